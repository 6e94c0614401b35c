"""
Tests for the command-line entry point.

Requires Python 3.11+.
"""

import asyncio
import json
import threading
from pathlib import Path

import httpx
import pytest

from service import main as service_main
from service.main import RunConfig, StartupError, build_parser, main, resolve_config, run
from trigger.client import build_import_url
from utils.config import Settings
from watcher.file_watcher import WatchSource


@pytest.fixture
def watch_calls(monkeypatch) -> list[Path]:
    """Record WatchSource.start calls without touching the filesystem."""
    calls: list[Path] = []

    def fake_start(self: WatchSource) -> None:
        calls.append(self._root_path)
        raise AssertionError("watching must not start")

    monkeypatch.setattr(WatchSource, "start", fake_start)
    return calls


class TestUsage:
    """Argument handling."""

    def test_missing_path_exits_2(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        assert "PHOTOPRISM_IMPORT_PATH" in capsys.readouterr().err

    def test_extra_path_exits_2(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path), str(tmp_path)])

        assert exc_info.value.code == 2

    def test_invalid_delay_exits_2(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["-delay", "soon", str(tmp_path)])

        assert exc_info.value.code == 2

    def test_go_style_flags(self, tmp_path):
        args = build_parser(Settings(_env_file=None)).parse_args(
            ["-debug", "-move", "-delay", "1m30s", "-url", "http://nas:2342/api/v1", str(tmp_path)]
        )

        assert args.debug is True
        assert args.move is True
        assert args.delay == 90.0
        assert args.url == "http://nas:2342/api/v1"
        assert args.path == str(tmp_path)

    def test_boolean_flags_override_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PRISMWATCH_MOVE", "true")
        monkeypatch.setenv("PRISMWATCH_RECURSIVE", "true")
        parser = build_parser(Settings(_env_file=None))

        defaults = parser.parse_args([str(tmp_path)])
        overridden = parser.parse_args(["--no-move", "--no-recursive", str(tmp_path)])

        assert defaults.move is True
        assert defaults.recursive is True
        assert overridden.move is False
        assert overridden.recursive is False

    def test_zero_delay_is_accepted(self, tmp_path):
        args = build_parser(Settings(_env_file=None)).parse_args(["-delay", "0s", str(tmp_path)])

        assert args.delay == 0.0

    @pytest.mark.parametrize("flag", ["-delay", "-timeout"])
    def test_negative_duration_exits_2(self, tmp_path, flag):
        with pytest.raises(SystemExit) as exc_info:
            main([f"{flag}=-1s", str(tmp_path)])

        assert exc_info.value.code == 2

    def test_zero_timeout_exits_2(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["-timeout", "0s", str(tmp_path)])

        assert exc_info.value.code == 2

    def test_help_mentions_app_password(self, capsys):
        with pytest.raises(SystemExit):
            main(["-h"])

        out = capsys.readouterr().out
        assert "PHOTOPRISM_APP_PASSWORD" in out
        assert "docs.photoprism.app" in out


class TestStartupErrors:
    """Fatal startup checks run before any watching."""

    def test_missing_token_is_fatal_before_watching(self, tmp_path, no_app_password, watch_calls):
        assert main([str(tmp_path)]) == 1
        assert watch_calls == []

    def test_missing_path(self, tmp_path, app_password, watch_calls):
        assert main([str(tmp_path / "missing")]) == 1
        assert watch_calls == []

    def test_path_is_not_a_directory(self, tmp_path, app_password, watch_calls):
        file_path = tmp_path / "photo.jpg"
        file_path.write_bytes(b"jpeg")

        assert main([str(file_path)]) == 1
        assert watch_calls == []

    def test_malformed_url(self, tmp_path, app_password, watch_calls):
        assert main(["-url", "ftp://nas/api/v1/", str(tmp_path)]) == 1
        assert watch_calls == []

    def test_resolve_config(self, tmp_path, app_password):
        settings = Settings(_env_file=None)
        args = build_parser(settings).parse_args(["-move", str(tmp_path)])

        config = resolve_config(args, settings)

        assert config.path == tmp_path
        assert str(config.import_url) == "http://127.0.0.1:2342/api/v1/import/"
        assert config.token == app_password
        assert config.move is True

    def test_missing_token_message_points_to_docs(self, tmp_path, no_app_password):
        settings = Settings(_env_file=None)
        args = build_parser(settings).parse_args([str(tmp_path)])

        with pytest.raises(StartupError, match="docs.photoprism.app"):
            resolve_config(args, settings)


class TestRun:
    """End-to-end run with a real directory and a mock transport."""

    @pytest.fixture
    def requests_seen(self, monkeypatch) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def respond(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"code": 200, "message": "import started"})

        monkeypatch.setattr(
            service_main,
            "create_http_client",
            lambda timeout=None: httpx.AsyncClient(transport=httpx.MockTransport(respond)),
        )
        return seen

    @pytest.mark.asyncio
    async def test_file_drop_triggers_import(self, tmp_path, requests_seen):
        config = RunConfig(
            path=tmp_path,
            import_url=build_import_url("http://photoprism:2342/api/v1/"),
            token="secret-token",
            delay=0.2,
            move=True,
        )
        stop = asyncio.Event()
        task = asyncio.create_task(run(config, stop))

        await asyncio.sleep(0.2)
        (tmp_path / "IMG_0001.jpg").write_bytes(b"jpeg data")

        for _ in range(50):
            if requests_seen:
                break
            await asyncio.sleep(0.1)

        stop.set()
        await asyncio.wait_for(task, timeout=10.0)

        assert requests_seen
        request = requests_seen[0]
        assert request.method == "POST"
        assert str(request.url) == "http://photoprism:2342/api/v1/import/"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == {"path": "/", "move": True}

    @pytest.mark.asyncio
    async def test_watch_failure_is_startup_error(self, tmp_path, requests_seen, monkeypatch):
        def fail_start(self: WatchSource) -> None:
            raise OSError("inotify watch limit reached")

        monkeypatch.setattr(WatchSource, "start", fail_start)
        config = RunConfig(
            path=tmp_path,
            import_url=build_import_url("http://photoprism:2342/api/v1/"),
            token="t",
            delay=0.2,
        )

        with pytest.raises(StartupError, match="inotify watch limit"):
            await run(config)

        assert requests_seen == []

    @pytest.mark.asyncio
    async def test_watcher_is_stopped_off_the_event_loop(self, tmp_path, requests_seen, monkeypatch):
        stopped_on: list[int] = []
        original_stop = WatchSource.stop

        def recording_stop(self: WatchSource) -> None:
            stopped_on.append(threading.get_ident())
            original_stop(self)

        monkeypatch.setattr(WatchSource, "stop", recording_stop)
        config = RunConfig(
            path=tmp_path,
            import_url=build_import_url("http://photoprism:2342/api/v1/"),
            token="t",
            delay=0.2,
        )
        stop = asyncio.Event()
        task = asyncio.create_task(run(config, stop))

        await asyncio.sleep(0.2)
        stop.set()
        await asyncio.wait_for(task, timeout=10.0)

        assert len(stopped_on) == 1
        assert stopped_on[0] != threading.get_ident()
