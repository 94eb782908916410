"""
Diagnostic Context - per-request property bag

Application code enriches the context while a request is being handled
(``request.state.diagnostic_context.set("UserId", 42)``); the middleware
completes the collection exactly once and attaches the collected
properties to the request completion event.

Lifecycle of a collector:
    OPEN -> COMPLETING -> COMPLETED
and DISPOSED once the request is finished, whatever the outcome.
"""

import enum
import logging
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger("reqlog.diagnostic_context")


class CollectorState(str, enum.Enum):
    """States of a DiagnosticContextCollector."""
    OPEN = "open"
    COMPLETING = "completing"
    COMPLETED = "completed"
    DISPOSED = "disposed"


class DiagnosticContextCollector:
    """Accumulates properties for a single request."""

    def __init__(self, owner: Optional["DiagnosticContext"] = None):
        self._owner = owner
        self._properties: Dict[str, Any] = {}
        self.state = CollectorState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is CollectorState.OPEN

    def add_or_update_property(self, name: str, value: Any) -> bool:
        """Record a property. Returns False when collection is no longer open."""
        if not self.is_open:
            logger.debug("Ignoring property %r set after collection %s", name, self.state.value)
            return False
        self._properties[name] = value
        return True

    def try_complete(self) -> Tuple[bool, Dict[str, Any]]:
        """
        Finish collection and hand back the accumulated properties.

        Only the first call on an open collector succeeds; later calls (or
        calls after dispose) return ``(False, {})``.
        """
        if not self.is_open:
            return False, {}

        self.state = CollectorState.COMPLETING
        properties = self._properties
        self._properties = {}
        self.state = CollectorState.COMPLETED
        return True, properties

    def dispose(self) -> None:
        """Release collected properties and detach from the owning context."""
        if self.state is CollectorState.DISPOSED:
            return
        self._properties = {}
        self.state = CollectorState.DISPOSED
        if self._owner is not None:
            self._owner._release(self)
            self._owner = None

    def __enter__(self) -> "DiagnosticContextCollector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


class DiagnosticContext:
    """
    Handle through which request-handling code adds properties to the
    completion event. One instance per request; never shared.
    """

    def __init__(self):
        self._collector: Optional[DiagnosticContextCollector] = None

    @property
    def collector(self) -> Optional[DiagnosticContextCollector]:
        return self._collector

    def begin_collection(self) -> DiagnosticContextCollector:
        collector = DiagnosticContextCollector(owner=self)
        self._collector = collector
        return collector

    def set(self, name: str, value: Any) -> None:
        """Set a property on the active collection. No-op when none is open."""
        if not name:
            raise ValueError("Property name must not be empty")
        collector = self._collector
        if collector is None:
            return
        collector.add_or_update_property(name, value)

    def _release(self, collector: DiagnosticContextCollector) -> None:
        if self._collector is collector:
            self._collector = None
