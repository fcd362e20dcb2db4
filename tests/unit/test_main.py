"""Unit tests for the channel probe CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Coroutine, Generator
from typing import Any
from unittest.mock import patch

import pytest

from macrobius_realtime.main import enable_debug_logging, main, parse_cli, run_probe
from tests.helpers.fake_transport import FakeTransportFactory

PROBE_ARGS = ["--url", "http://backend.test:8080", "--user-id", "user-1", "--duration", "0.05"]


def close_and_return(code: int):
    """uvloop.run stand-in that discards the coroutine."""

    def fake_run(coro: Coroutine[Any, Any, int]) -> int:
        coro.close()
        return code

    return fake_run


@pytest.fixture
def package_logger_levels() -> Generator[None]:
    """Restore package logger levels changed by debug mode."""
    loggers = [
        logging.getLogger(name)
        for name in list(logging.Logger.manager.loggerDict)
        if name.startswith("macrobius_realtime")
    ]
    saved = [(lg, lg.level, [(h, h.level) for h in lg.handlers]) for lg in loggers]
    yield
    for lg, level, handlers in saved:
        lg.setLevel(level)
        for handler, handler_level in handlers:
            handler.setLevel(handler_level)


class TestParseCli:
    def test_defaults(self):
        args = parse_cli(["--user-id", "user-1"])

        assert args.user_id == "user-1"
        assert args.send_type is None
        assert args.data is None
        assert args.listen == []
        assert args.duration == 5.0
        assert args.debug is False

    def test_send_with_json_payload(self):
        args = parse_cli(["--user-id", "u", "--send", "chat", "--data", '{"text": "hi"}', "--listen", "chat"])

        assert args.send_type == "chat"
        assert args.data == {"text": "hi"}
        assert args.listen == ["chat"]

    def test_invalid_json_payload_exits(self):
        with pytest.raises(SystemExit):
            _ = parse_cli(["--user-id", "u", "--send", "chat", "--data", "{not json"])

    def test_data_requires_send(self):
        with pytest.raises(SystemExit):
            _ = parse_cli(["--user-id", "u", "--data", "{}"])

    def test_user_id_required(self):
        with pytest.raises(SystemExit):
            _ = parse_cli([])


class TestRunProbe:
    @pytest.mark.asyncio
    async def test_sends_and_reports_statistics(self, capsys: pytest.CaptureFixture[str]):
        factory = FakeTransportFactory()
        args = parse_cli([*PROBE_ARGS, "--send", "chat", "--data", '{"text": "hi"}'])

        code = await run_probe(args, transport_factory=factory)

        assert code == 0
        assert [frame["type"] for frame in factory.latest.sent_messages] == ["chat"]
        assert factory.latest.closed_with == (1000, "Client disconnecting")
        assert '"connection_state": "connected"' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_prints_listened_messages(self, capsys: pytest.CaptureFixture[str]):
        factory = FakeTransportFactory()
        args = parse_cli([*PROBE_ARGS, "--listen", "quiz_update"])

        def factory_with_frame():
            transport = factory()
            transport.feed({"type": "quiz_update", "data": {"round": 2}})
            return transport

        code = await run_probe(args, transport_factory=factory_with_frame)

        assert code == 0
        out_lines = capsys.readouterr().out.splitlines()
        assert json.loads(out_lines[0]) == {"type": "quiz_update", "data": {"round": 2}}

    @pytest.mark.asyncio
    async def test_initial_connect_failure_exits_nonzero(self):
        factory = FakeTransportFactory()
        factory.fail_next(1)

        code = await run_probe(parse_cli(PROBE_ARGS), transport_factory=factory)

        assert code == 1
        assert len(factory.transports) == 1


class TestMain:
    def test_main_runs_probe_on_uvloop(self):
        with (
            patch("macrobius_realtime.main.uvloop.run", side_effect=close_and_return(0)) as mock_run,
            patch("macrobius_realtime.main.start_metrics_server") as mock_metrics,
        ):
            code = main(["--user-id", "user-1"])

        assert code == 0
        mock_run.assert_called_once()
        mock_metrics.assert_not_called()

    def test_main_starts_metrics_server(self):
        with (
            patch("macrobius_realtime.main.uvloop.run", side_effect=close_and_return(0)),
            patch("macrobius_realtime.main.start_metrics_server") as mock_metrics,
        ):
            _ = main(["--user-id", "user-1", "--metrics", "--metrics-port", "9555"])

        mock_metrics.assert_called_once_with(9555)

    def test_main_handles_keyboard_interrupt(self):
        def interrupted(coro: Coroutine[Any, Any, int]) -> int:
            coro.close()
            raise KeyboardInterrupt

        with patch("macrobius_realtime.main.uvloop.run", side_effect=interrupted):
            assert main(["--user-id", "user-1"]) == 130

    @pytest.mark.usefixtures("package_logger_levels")
    def test_enable_debug_logging(self):
        package_logger = logging.getLogger("macrobius_realtime")

        enable_debug_logging()

        assert package_logger.level == logging.DEBUG
        assert package_logger.handlers
        assert all(handler.level == logging.DEBUG for handler in package_logger.handlers)
        assert logging.getLogger("macrobius_realtime.transport.channel").isEnabledFor(logging.DEBUG)
