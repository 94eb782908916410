"""
Registration helpers.

``use_request_logging(app)`` adds RequestLoggingMiddleware to a FastAPI or
Starlette app. Add it before any middleware or routes whose activity
should be covered by the completion event. Options come from, in order:
the ``options`` argument, or Settings; then ``message_template`` and the
``configure`` callback are applied on top.
"""

from typing import Callable, Optional

from starlette.applications import Starlette

from .core.config import get_settings
from .middleware.request_logger import RequestLoggingMiddleware
from .models.options import RequestLoggingOptions


def use_request_logging(
    app: Starlette,
    message_template: Optional[str] = None,
    configure: Optional[Callable[[RequestLoggingOptions], None]] = None,
    options: Optional[RequestLoggingOptions] = None,
) -> Starlette:
    if app is None:
        raise ValueError("app cannot be None.")

    opts = options or RequestLoggingOptions.from_settings(get_settings())

    if message_template is not None:
        opts.message_template = message_template
    if configure is not None:
        configure(opts)

    # Configuration errors surface here, before the app serves requests
    opts.validate()

    app.add_middleware(RequestLoggingMiddleware, options=opts)
    return app
