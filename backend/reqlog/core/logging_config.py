"""
Logging setup for reqlog.

Request completion events travel through stdlib logging with their
structured properties on the LogRecord (``record.properties``). In JSON
mode a structlog ProcessorFormatter turns each record into one JSON
object per line, with the event properties flattened into it; the text
formatter just prints the rendered message.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from .config import Settings, get_settings

ROOT_LOGGER_NAME = "reqlog"
VERBOSE = 5

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Event dict keys that event properties must not overwrite
_RESERVED_KEYS = {
    "timestamp", "level", "logger", "event", "message_template", "exception",
    "_record", "_from_structlog",
}


def add_record_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Stamp the event with the record's creation time, not formatting time."""
    record = event_dict.get("_record")
    if record is not None:
        event_dict["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
    return event_dict


def flatten_event_properties(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Copy ``message_template`` and every event property into the event dict."""
    record = event_dict.get("_record")
    if record is None:
        return event_dict

    template = getattr(record, "message_template", None)
    if template is not None:
        event_dict["message_template"] = template

    properties = getattr(record, "properties", None) or {}
    for key, value in properties.items():
        if key in _RESERVED_KEYS:
            key = f"property_{key}"
        event_dict[key] = value
    return event_dict


def build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=[
            add_record_timestamp,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            flatten_event_properties,
            structlog.processors.format_exc_info,
        ],
    )


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Attach a single stream handler to the ``reqlog`` logger."""
    settings = settings or get_settings()
    logging.addLevelName(VERBOSE, "VERBOSE")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(settings.LOG_LEVEL.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_reqlog_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._reqlog_handler = True
    if settings.LOG_FORMAT.lower() == "json":
        handler.setFormatter(build_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
