"""FastAPI dependencies for request handlers."""

from fastapi import Request

from ..middleware.request_logger import DIAGNOSTIC_CONTEXT_STATE_KEY
from ..services.diagnostic_context import DiagnosticContext


def get_diagnostic_context(request: Request) -> DiagnosticContext:
    """
    Return the diagnostic context for the current request.

    Falls back to a detached context (whose writes go nowhere) when the
    request logging middleware is not installed.
    """
    context = getattr(request.state, DIAGNOSTIC_CONTEXT_STATE_KEY, None)
    if context is None:
        context = DiagnosticContext()
    return context
