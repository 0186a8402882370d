"""
This module provides utility classes for per-component logging, JSON formatting of wire frames,
and colored console output for the dashboard logger.
"""

import json
import logging
import os
from typing import IO, Any, Optional


class LoggerMixin:
    """
    Mixin giving each component its own logger under the dashboard logger.

    Loggers are named after the class, optionally narrowed by a scope such as the
    watched table, e.g. ``CasaControlSync.DevicesChannelSubscription.public.devices``.

    Methods:
        _build_logger(logger, scope): Attaches the component logger.
        _log(level, message): Logs through the component logger if one is attached.
    """

    _logger: logging.Logger

    def _build_logger(
        self,
        logger: logging.Logger,
        scope: Optional[str] = None,
    ) -> None:
        """
        Attach a child of the given logger named after the class.

        Args:
            logger (logging.Logger): The dashboard (or parent component) logger.
            scope (Optional[str]): Extra name segment for components that exist per channel or table.
        """
        component_logger = logger.getChild(type(self).__name__)
        if scope:
            component_logger = component_logger.getChild(scope)
        self._logger = component_logger

    def _log(self, level: int, message: str) -> None:
        logger = getattr(self, "_logger", None)
        if logger is not None:
            logger.log(level, message)


class StringUtils:
    """
    Utility class for JSON formatting of wire payloads in log output.
    """

    @staticmethod
    def pretty_json(data: Any) -> str:
        """Return a pretty-printed JSON string."""
        return json.dumps(data, indent=4, sort_keys=True, default=str)


class ColorFormatter(logging.Formatter):
    """
    Logging formatter coloring each line by level when writing to a terminal.

    Colors are used only when ``use_color`` is True, or when it is left as None and
    the target stream is a TTY and ``NO_COLOR`` is not set.
    """

    COLORS = {
        "DEBUG": "\033[94m",
        "INFO": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[95m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        *,
        use_color: Optional[bool] = None,
        stream: Optional[IO[str]] = None,
    ) -> None:
        super().__init__(fmt)
        if use_color is None:
            use_color = self._stream_supports_color(stream)
        self.use_color = use_color

    @staticmethod
    def _stream_supports_color(stream: Optional[IO[str]]) -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_color:
            return message
        color = self.COLORS.get(record.levelname)
        if color is None:
            return message
        return f"{color}{message}{self.RESET}"
