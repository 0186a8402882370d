"""
Tests for component loggers and the console formatter.
"""

import io
import logging

import pytest

from casa_sync.common.utility import ColorFormatter, LoggerMixin
from casa_sync.infrastructure.supabase.realtime.realtime_channel import (
    DevicesChannelSubscription,
)


class _Component(LoggerMixin):
    pass


def _record(level: int = logging.WARNING) -> logging.LogRecord:
    return logging.LogRecord(
        name="CasaControlSync",
        level=level,
        pathname=__file__,
        lineno=1,
        msg="Lamp unreachable",
        args=(),
        exc_info=None,
    )


class TestLoggerMixin:
    def test_child_named_after_class(self):
        component = _Component()
        component._build_logger(logger=logging.getLogger("CasaControlSync"))

        assert component._logger.name == "CasaControlSync._Component"

    def test_scope_narrows_name(self):
        component = _Component()
        component._build_logger(
            logger=logging.getLogger("CasaControlSync"), scope="public.devices"
        )

        assert component._logger.name == "CasaControlSync._Component.public.devices"

    def test_log_without_logger_is_noop(self):
        _Component()._log(logging.INFO, "nothing attached")

    def test_channel_logger_is_scoped_by_table(self, event_bus, logger, connection_factory):
        subscription = DevicesChannelSubscription(
            supabase_url="https://proj.supabase.co",
            api_key="anon-key",
            schema="public",
            table="devices",
            event_bus=event_bus,
            scheduler=None,  # type: ignore[arg-type]
            logger=logger,
            connection_factory=connection_factory,
        )

        assert subscription._logger.name.endswith(
            "DevicesChannelSubscription.public.devices"
        )


class TestColorFormatter:
    def test_colored_when_forced(self):
        formatter = ColorFormatter("%(levelname)s %(message)s", use_color=True)

        line = formatter.format(_record())

        assert line == f"{ColorFormatter.COLORS['WARNING']}WARNING Lamp unreachable{ColorFormatter.RESET}"

    def test_plain_for_non_terminal_stream(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        formatter = ColorFormatter("%(levelname)s %(message)s", stream=io.StringIO())

        assert formatter.format(_record()) == "WARNING Lamp unreachable"

    def test_no_color_env_wins_over_terminal(self, monkeypatch):
        class _Terminal(io.StringIO):
            def isatty(self):
                return True

        monkeypatch.setenv("NO_COLOR", "1")
        assert not ColorFormatter(stream=_Terminal()).use_color

        monkeypatch.delenv("NO_COLOR")
        assert ColorFormatter(stream=_Terminal()).use_color

    @pytest.mark.parametrize("level", [logging.DEBUG, logging.ERROR])
    def test_each_level_has_its_color(self, level):
        formatter = ColorFormatter("%(message)s", use_color=True)
        record = _record(level)

        assert formatter.format(record).startswith(
            ColorFormatter.COLORS[record.levelname]
        )
