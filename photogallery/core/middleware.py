from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

CSP = " ".join(
    [
        "default-src 'self';",
        # /docs loads Swagger UI from jsDelivr
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net;",
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net;",
        # Uploaded images are served from our own /storage mount
        "img-src 'self' data: https://fastapi.tiangolo.com;",
        "object-src 'none';",
        "base-uri 'self';",
        "form-action 'self';",
    ]
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request, call_next):
        response: Response = await call_next(request)
        content_type = response.headers.get("content-type", "").lower()
        # Only HTML pages need these
        if content_type.startswith("text/html") or content_type == "":
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Content-Security-Policy"] = CSP
            if self.hsts:
                response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response


def add_middleware(app, settings) -> None:
    app.add_middleware(GZipMiddleware, minimum_size=500)
    # Strict transport only makes sense when the site is served over https
    app.add_middleware(SecurityHeadersMiddleware, hsts=bool(settings.COOKIE_SECURE))
