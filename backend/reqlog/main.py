"""
Demo application showing reqlog wired into FastAPI.

Run with any ASGI server, e.g. ``uvicorn reqlog.main:app``.
"""

from typing import Any, Dict

from fastapi import Depends, FastAPI, Request

from .api.deps import get_diagnostic_context
from .core.config import settings
from .core.logging_config import configure_logging
from .extensions import use_request_logging
from .services.diagnostic_context import DiagnosticContext


def create_app() -> FastAPI:
    configure_logging(settings)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "healthy", "version": settings.APP_VERSION}

    @app.post("/api/v1/echo")
    async def echo(
        request: Request,
        diagnostic_context: DiagnosticContext = Depends(get_diagnostic_context),
    ) -> Dict[str, Any]:
        body = await request.body()
        diagnostic_context.set("EchoedBytes", len(body))
        return {"length": len(body), "body": body.decode("utf-8", errors="replace")}

    use_request_logging(app)
    return app


app = create_app()
