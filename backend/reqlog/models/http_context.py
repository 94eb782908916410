"""Per-request view of an ASGI HTTP request handed to level and enrichment callbacks."""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, MutableMapping, Tuple

from ..services.diagnostic_context import DiagnosticContext
from ..services.header_filter import canonical_header_name

TRACE_ID_HEADER = b"x-request-id"


@dataclass
class HttpContext:
    scope: MutableMapping[str, Any]
    method: str
    path: str
    raw_target: str
    headers: List[Tuple[str, str]]
    trace_identifier: str
    diagnostic_context: DiagnosticContext
    status_code: int = 200

    @classmethod
    def from_scope(cls, scope: MutableMapping[str, Any],
                   diagnostic_context: DiagnosticContext) -> "HttpContext":
        raw_headers = scope.get("headers") or []
        trace_identifier = None
        for name, value in raw_headers:
            if name.lower() == TRACE_ID_HEADER:
                trace_identifier = value.decode("latin-1")
                break

        return cls(
            scope=scope,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
            raw_target=get_raw_target(scope),
            headers=merge_headers(raw_headers),
            trace_identifier=trace_identifier or uuid.uuid4().hex,
            diagnostic_context=diagnostic_context,
        )

    @property
    def request_path(self) -> str:
        """The raw request target when available, else the normalized path."""
        return self.raw_target or self.path


def get_raw_target(scope: MutableMapping[str, Any]) -> str:
    raw_path = scope.get("raw_path")
    if not raw_path:
        return ""
    target = raw_path.decode("latin-1")
    query_string = scope.get("query_string") or b""
    # Some servers already leave the query on raw_path
    if query_string and b"?" not in raw_path:
        target = f"{target}?{query_string.decode('latin-1')}"
    return target


def merge_headers(raw_headers) -> List[Tuple[str, str]]:
    """Decode ASGI headers, joining repeated names with ", " in first-seen order."""
    merged: Dict[str, List[str]] = {}
    for name, value in raw_headers:
        key = canonical_header_name(name.decode("latin-1"))
        merged.setdefault(key, []).append(value.decode("latin-1"))
    return [(name, ", ".join(values)) for name, values in merged.items()]
