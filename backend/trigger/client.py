"""
PrismWatch Import Trigger Client.

Sends one authenticated import request to the PhotoPrism API per call.
Requires Python 3.11+.
"""

import httpx
from pydantic import ValidationError

from trigger.models import ImportResult, TriggerRequest, TriggerResponse
from utils.logger import LoggerMixin


IMPORT_PATH = "import/"


def build_import_url(base: str) -> httpx.URL:
    """
    Join the API base URL with the import endpoint path.

    Exactly one slash separates the base path from ``import/``, whether
    or not the base ends with one.

    Args:
        base: PhotoPrism API URL, e.g. http://127.0.0.1:2342/api/v1/

    Returns:
        Absolute import endpoint URL

    Raises:
        ValueError: If the URL is malformed or not an absolute http(s) URL
    """
    try:
        url = httpx.URL(base)
    except httpx.InvalidURL as e:
        raise ValueError(f"invalid API URL {base!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"invalid API URL {base!r}: expected an absolute http(s) URL")

    return url.copy_with(path=url.path.rstrip("/") + "/" + IMPORT_PATH)


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """
    Create the shared HTTP client.

    Args:
        timeout: Request timeout in seconds; None waits indefinitely

    Returns:
        Async HTTP client; the caller closes it
    """
    return httpx.AsyncClient(timeout=timeout)


class ImportTrigger(LoggerMixin):
    """
    Triggers a PhotoPrism import.

    Each call makes exactly one attempt. Every failure is logged and
    reported in the returned ImportResult; nothing is raised and nothing
    is retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: httpx.URL | str,
        token: str,
        move: bool = False,
    ) -> None:
        """
        Initialize the trigger.

        Args:
            client: HTTP client used to send requests
            url: Import endpoint URL (see build_import_url)
            token: App password sent as bearer token
            move: Ask PhotoPrism to remove files after importing them
        """
        self._client = client
        self._url = url
        self._token = token
        self._move = move

    async def __call__(self) -> ImportResult:
        return await self.trigger()

    async def trigger(self) -> ImportResult:
        """
        Send one import request and classify the outcome.

        Returns:
            ImportResult describing success or the failing stage
        """
        self.log.debug("sending_request", url=str(self._url), move=self._move)

        try:
            body = TriggerRequest(move=self._move).model_dump_json()
        except (TypeError, ValueError) as e:
            return self._failed("serialize", error=str(e))

        try:
            request = self._client.build_request(
                "POST",
                self._url,
                content=body,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            )
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            return self._failed("request", error=str(e))

        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            return self._failed("transport", error=str(e) or e.__class__.__name__)

        try:
            result = TriggerResponse.model_validate_json(response.content)
        except ValidationError:
            self.log.error(
                "unexpected_response",
                status=response.status_code,
                body=response.text,
            )
            return ImportResult(
                success=False,
                stage="parse",
                status_code=response.status_code,
                error=response.text,
            )

        if not result.ok:
            self.log.error("unexpected_response", code=result.code, error=result.error)
            return ImportResult(
                success=False,
                stage="response",
                status_code=response.status_code,
                code=result.code,
                message=result.message,
                error=result.error,
            )

        self.log.info("import_triggered", code=result.code, message=result.message)
        return ImportResult(
            success=True,
            stage="done",
            status_code=response.status_code,
            code=result.code,
            message=result.message,
        )

    def _failed(self, stage: str, error: str) -> ImportResult:
        self.log.error("import_failed", stage=stage, error=error)
        return ImportResult(success=False, stage=stage, error=error)
