"""
Structured log event model.

A LogEvent is built once per request at completion time and handed
straight to a LogSink. Levels line up with the stdlib logging levels so
a sink can forward them without translation.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from ..services.message_template import MessageTemplate


class LogEventLevel(enum.IntEnum):
    """Severity of a log event."""
    VERBOSE = 5
    DEBUG = 10
    INFORMATION = 20
    WARNING = 30
    ERROR = 40
    FATAL = 50


@dataclass(frozen=True)
class LogEvent:
    """An immutable structured event: template plus named properties."""
    timestamp: datetime
    level: LogEventLevel
    message_template: "MessageTemplate"
    properties: Mapping[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def create(
        cls,
        timestamp: datetime,
        level: LogEventLevel,
        exception: Optional[BaseException],
        message_template: "MessageTemplate",
        properties: Iterable[Tuple[str, Any]],
    ) -> "LogEvent":
        """Build an event from an ordered sequence of (name, value) pairs.

        When names collide the last value added wins.
        """
        collected: Dict[str, Any] = {}
        for name, value in properties:
            collected[name] = value
        return cls(
            timestamp=timestamp,
            level=level,
            message_template=message_template,
            properties=collected,
            exception=exception,
        )

    def render_message(self) -> str:
        return self.message_template.render(self.properties)
