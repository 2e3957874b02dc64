"""Security response headers."""
from typing import Dict, Iterable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from taskhub.config import settings

PERMISSIONS_POLICY = (
    "accelerometer=(), camera=(), geolocation=(), gyroscope=(), "
    "magnetometer=(), microphone=(), payment=(), usb=()"
)


def build_security_headers() -> Dict[str, str]:
    """Header set added to every response, driven by settings."""
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": settings.X_FRAME_OPTIONS,
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": PERMISSIONS_POLICY,
        "X-Permitted-Cross-Domain-Policies": "none",
    }
    if settings.HSTS_MAX_AGE > 0:
        headers["Strict-Transport-Security"] = f"max-age={settings.HSTS_MAX_AGE}; includeSubDomains"
    if settings.CONTENT_SECURITY_POLICY:
        headers["Content-Security-Policy"] = settings.CONTENT_SECURITY_POLICY
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers and strips server identification."""

    def __init__(self, app, headers: Dict[str, str], csp_exempt_paths: Iterable[str] = ()):
        super().__init__(app)
        self.headers = headers
        self.csp_exempt_paths = frozenset(path for path in csp_exempt_paths if path)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            if name == "Content-Security-Policy" and request.url.path in self.csp_exempt_paths:
                # Interactive docs load their assets from a CDN
                continue
            response.headers.setdefault(name, value)
        for name in ("server", "x-powered-by"):
            if name in response.headers:
                del response.headers[name]
        return response


def setup_security_headers(app: FastAPI) -> None:
    if not settings.SECURITY_HEADERS_ENABLED:
        return
    app.add_middleware(
        SecurityHeadersMiddleware,
        headers=build_security_headers(),
        csp_exempt_paths=(app.docs_url, app.redoc_url),
    )
