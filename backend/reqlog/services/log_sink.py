"""
Log sinks — where completed request events are written.

The middleware only needs two things from a sink: whether a level is
enabled, and a way to write a finished LogEvent. StdlibLogSink forwards
events into the standard logging module so any configured handler
(see core.logging_config) receives them.
"""

import logging
from abc import ABC, abstractmethod

from ..models.log_event import LogEvent, LogEventLevel

DEFAULT_LOGGER_NAME = "reqlog.middleware.request_logger"


class LogSink(ABC):
    """Destination for structured log events."""

    @abstractmethod
    def is_enabled(self, level: LogEventLevel) -> bool:
        ...

    @abstractmethod
    def write(self, event: LogEvent) -> None:
        ...


class StdlibLogSink(LogSink):
    """Adapts a ``logging.Logger`` to the LogSink interface."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @property
    def name(self) -> str:
        return self.logger.name

    def is_enabled(self, level: LogEventLevel) -> bool:
        return self.logger.isEnabledFor(int(level))

    def write(self, event: LogEvent) -> None:
        exc_info = None
        if event.exception is not None:
            exc = event.exception
            exc_info = (type(exc), exc, exc.__traceback__)

        record = self.logger.makeRecord(
            self.logger.name,
            int(event.level),
            fn="",
            lno=0,
            msg=event.render_message(),
            args=(),
            exc_info=exc_info,
            extra={
                "message_template": event.message_template.text,
                "properties": dict(event.properties),
            },
        )
        record.created = event.timestamp.timestamp()
        record.msecs = (record.created - int(record.created)) * 1000
        self.logger.handle(record)


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> StdlibLogSink:
    """Return a sink bound to the named stdlib logger."""
    return StdlibLogSink(logging.getLogger(name))
