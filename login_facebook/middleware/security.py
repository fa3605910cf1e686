from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from login_facebook.utils.logging import get_logger

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every response, and ``Cache-Control: no-store``
    on the login page so callback responses are never cached.
    """

    def __init__(self, app: ASGIApp, no_store_paths: list[str] | None = None) -> None:
        super().__init__(app)
        self.no_store_paths = set(no_store_paths or [])
        logger.info("security_headers_middleware_initialized", no_store_paths=list(self.no_store_paths))

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        # Keep the callback's code and state out of Referer headers
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.path in self.no_store_paths:
            response.headers["Cache-Control"] = "no-store"

        return response
