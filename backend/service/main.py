"""
PrismWatch Service Entry Point.

Parses command-line flags, validates startup configuration and runs the
watcher until interrupted.
Requires Python 3.11+.
"""

import argparse
import asyncio
import signal
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import httpx
from pydantic import ValidationError

from trigger.client import ImportTrigger, build_import_url, create_http_client
from utils.config import APP_PASSWORD_DOCS_URL, APP_PASSWORD_ENV_KEY, Settings, get_settings
from utils.durations import parse_duration
from utils.logger import configure_logging, get_logger
from watcher.debouncer import DebounceCoordinator
from watcher.file_watcher import WatchSource


SHUTDOWN_GRACE_SECONDS = 5.0


class StartupError(Exception):
    """Configuration or environment problem that prevents watching."""


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Validated runtime configuration."""

    path: Path
    import_url: httpx.URL
    token: str
    delay: float
    move: bool = False
    recursive: bool = False
    timeout: float | None = None


def _duration(text: str) -> float:
    try:
        seconds = parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"duration must not be negative: {text!r}")
    return seconds


def _positive_duration(text: str) -> float:
    seconds = _duration(text)
    if seconds == 0:
        raise argparse.ArgumentTypeError(f"duration must be positive: {text!r}")
    return seconds


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """
    Build the command-line parser.

    Defaults come from settings so PRISMWATCH_* variables apply unless a
    flag overrides them.
    """
    parser = argparse.ArgumentParser(
        prog="prismwatch",
        usage="%(prog)s [options] PHOTOPRISM_IMPORT_PATH",
        description="Trigger a PhotoPrism import after activity in a folder settles.",
        epilog=(
            f"The {APP_PASSWORD_ENV_KEY} environment variable must be set to an "
            f"app-specific password.\nSee {APP_PASSWORD_DOCS_URL} for details."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-debug",
        "--debug",
        action="store_true",
        help="Log filesystem events",
    )
    parser.add_argument(
        "-delay",
        "--delay",
        type=_duration,
        default=settings.watcher.delay,
        help="How soon after the last filesystem event to trigger the import (e.g. 10s, 1m30s)",
    )
    parser.add_argument(
        "-move",
        "--move",
        action=argparse.BooleanOptionalAction,
        default=settings.watcher.move,
        help="Tell PhotoPrism to remove imported files",
    )
    parser.add_argument(
        "-url",
        "--url",
        default=settings.watcher.url,
        help="PhotoPrism API URL (default: %(default)s)",
    )
    parser.add_argument(
        "-recursive",
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=settings.watcher.recursive,
        help="Also watch subdirectories",
    )
    parser.add_argument(
        "-timeout",
        "--timeout",
        type=_positive_duration,
        default=settings.watcher.timeout,
        help="Request timeout (default: wait indefinitely)",
    )
    parser.add_argument("path", metavar="PHOTOPRISM_IMPORT_PATH")
    return parser


def resolve_config(args: argparse.Namespace, settings: Settings) -> RunConfig:
    """
    Validate parsed arguments against the environment.

    Checks run in order: watch path, API URL, token.

    Raises:
        StartupError: On the first failed check
    """
    path = Path(args.path)
    try:
        path.stat()
    except OSError as e:
        raise StartupError(str(e)) from e
    if not path.is_dir():
        raise StartupError(f"{path}: not a directory")

    try:
        import_url = build_import_url(args.url)
    except ValueError as e:
        raise StartupError(str(e)) from e

    token = settings.token
    if token is None:
        raise StartupError(
            f"{APP_PASSWORD_ENV_KEY} environment variable is required, "
            f"see {APP_PASSWORD_DOCS_URL}"
        )

    return RunConfig(
        path=path,
        import_url=import_url,
        token=token,
        delay=args.delay,
        move=args.move,
        recursive=args.recursive,
        timeout=args.timeout,
    )


async def run(config: RunConfig, stop: asyncio.Event | None = None) -> None:
    """
    Watch the configured directory until ``stop`` is set.

    Args:
        config: Validated runtime configuration
        stop: Shutdown signal; runs until the stream closes if omitted

    Raises:
        StartupError: If the directory cannot be watched
    """
    log = get_logger("prismwatch")
    loop = asyncio.get_running_loop()
    source = WatchSource(config.path, loop, recursive=config.recursive)

    async with create_http_client(config.timeout) as client:
        trigger = ImportTrigger(client, config.import_url, config.token, move=config.move)
        coordinator = DebounceCoordinator(trigger, delay=config.delay)

        try:
            source.start()
        except OSError as e:
            raise StartupError(f"cannot watch {config.path}: {e}") from e

        log.info(
            "watching",
            path=str(config.path),
            delay=config.delay,
            url=str(config.import_url),
            move=config.move,
        )

        supervisor = asyncio.create_task(source.supervise())
        try:
            await coordinator.run(source.queue, stop)
        finally:
            supervisor.cancel()
            await asyncio.to_thread(source.stop)
            try:
                await asyncio.wait_for(coordinator.drain(), timeout=SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("in_flight_imports_cancelled", count=coordinator.in_flight)
            log.info("watcher_stopped")


async def _serve(config: RunConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still reaches main()
            continue
    await run(config, stop)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 1

    args = build_parser(settings).parse_args(argv)
    configure_logging(level="DEBUG" if args.debug else settings.logging.level)
    log = get_logger("prismwatch")

    try:
        config = resolve_config(args, settings)
        asyncio.run(_serve(config))
    except StartupError as e:
        log.critical("fatal", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("shutdown_requested")

    return 0


if __name__ == "__main__":
    sys.exit(main())
