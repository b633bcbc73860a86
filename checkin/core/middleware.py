"""
Check in service - HTTP Middleware
Request/Response logging, security headers, server side sessions, language,
feature flags and country restriction
"""

import secrets
import time
from typing import Awaitable, Callable, Dict, Optional, Set

from itsdangerous import BadSignature, TimestampSigner, URLSafeSerializer
from starlette.datastructures import MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from checkin.content import (
    DEFAULT_LANGUAGE,
    build_language_toggle,
    get_lang_from_path,
    is_valid_language,
    strip_lang_prefix,
)
from checkin.core.config import settings
from checkin.core.exceptions import CheckinServiceError
from checkin.core.templates import render
from checkin.core.logging_config import (
    logger,
    set_request_id,
    set_submission_id,
    generate_request_id,
)
from checkin.core.redis_client import RedisClient, redis_client
from checkin.services import get_esupervision_service
from checkin.services.esupervision_service import CheckinEventType
from checkin.services.geoip_service import GeoIpLookup
from checkin.utils.strings import is_uuid


# Paths that should skip detailed logging (health checks, static files)
SKIP_LOGGING_PATHS: Set[str] = {
    "/health",
    "/health/ping",
    "/ping",
    "/info",
    "/favicon.ico",
}


def should_skip_logging(path: str) -> bool:
    """Check if path should skip detailed logging"""
    if path in SKIP_LOGGING_PATHS:
        return True
    # Skip static file requests
    if path.startswith("/assets/") or path.endswith((".js", ".css", ".png", ".ico", ".woff2")):
        return True
    return False


def submission_id_from_path(path: str) -> Optional[str]:
    """The check in id is always the first path segment, e.g. /{uuid}/verify"""
    first_segment = path.lstrip("/").split("/", 1)[0]
    return first_segment if is_uuid(first_segment) else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    Features:
    - Generates and tracks request IDs for correlation
    - Logs request method, path, status, and duration
    - Sets context variables for downstream logging
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        # Read by the error page after the context var is reset
        request.state.request_id = request_id

        path = request.url.path
        submission_id = submission_id_from_path(path)
        if submission_id:
            set_submission_id(submission_id)

        skip_logging = should_skip_logging(path)
        start_time = time.perf_counter()

        if not skip_logging:
            logger.info(
                f"→ {request.method} {path}",
                extra={
                    "event_type": "http_request_start",
                    "http_method": request.method,
                    "http_path": path,
                    "client_ip": request.client.host if request.client else "unknown",
                }
            )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if not skip_logging:
                status_code = response.status_code

                if status_code >= 500:
                    log_level = "error"
                elif status_code >= 400:
                    log_level = "warning"
                else:
                    log_level = "info"

                log_func = getattr(logger, log_level)
                log_func(
                    f"← {request.method} {path} - {status_code} ({duration_ms:.2f}ms)",
                    extra={
                        "event_type": "http_request_complete",
                        "http_method": request.method,
                        "http_path": path,
                        "http_status": status_code,
                        "duration_ms": duration_ms,
                    }
                )

                if duration_ms > 1000:
                    logger.warning(
                        f"Slow request: {request.method} {path} took {duration_ms:.2f}ms",
                        extra={
                            "event_type": "slow_request",
                            "http_method": request.method,
                            "http_path": path,
                            "duration_ms": duration_ms,
                        }
                    )

            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000

            logger.error(
                f"✗ {request.method} {path} - Exception ({duration_ms:.2f}ms): {type(exc).__name__}",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": request.method,
                    "http_path": path,
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                }
            )
            raise

        finally:
            set_request_id("")
            set_submission_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # The recorder page needs the camera; nothing needs the microphone
        response.headers["Permissions-Policy"] = "camera=(self), microphone=()"

        # Pages hold answers and must not be served from the back/forward cache
        if response.headers.get("content-type", "").startswith("text/html"):
            response.headers["Cache-Control"] = "no-store"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to limit request body size
    """

    def __init__(self, app: ASGIApp, max_size: int = 1 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")

        if content_length and content_length.isdecimal() and int(content_length) > self.max_size:
            logger.warning(
                f"Request body too large: {content_length} bytes (max: {self.max_size})",
                extra={
                    "event_type": "request_too_large",
                    "content_length": int(content_length),
                    "max_size": self.max_size,
                    "http_path": request.url.path,
                }
            )
            return JSONResponse(
                status_code=413,
                content={"detail": f"Request body too large. Maximum size is {self.max_size // 1024}KB"}
            )

        return await call_next(request)


class ServerSessionMiddleware:
    """
    Session data kept in Redis, keyed by a random id in a signed cookie.

    Exposes the data as ``request.session`` like Starlette's cookie
    sessions, so answers of any length never reach the cookie. An emptied
    session deletes the stored data and expires the cookie.
    """

    def __init__(
        self,
        app: ASGIApp,
        secret_key: str,
        store: Optional[RedisClient] = None,
        session_cookie: str = "session",
        max_age: int = 14 * 24 * 60 * 60,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ):
        self.app = app
        self.signer = TimestampSigner(str(secret_key))
        self.store = store or redis_client
        self.session_cookie = session_cookie
        self.max_age = max_age
        self.path = path
        self.security_flags = f"httponly; samesite={same_site}"
        if https_only:
            self.security_flags += "; secure"

    def load_session_id(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            return self.signer.unsign(cookie.encode("utf-8"), max_age=self.max_age).decode("utf-8")
        except BadSignature:
            return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session_id = self.load_session_id(connection.cookies.get(self.session_cookie))
        data = await self.store.get_session(session_id) if session_id else None
        if data is None:
            # Unknown or expired ids are never reused
            session_id = None
        scope["session"] = data or {}
        initial_session_was_empty = not data

        async def send_wrapper(message: Message) -> None:
            nonlocal session_id
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                if scope["session"]:
                    session_id = session_id or secrets.token_urlsafe(32)
                    await self.store.set_session(session_id, scope["session"], self.max_age)
                    signed = self.signer.sign(session_id.encode("utf-8")).decode("utf-8")
                    headers.append(
                        "Set-Cookie",
                        f"{self.session_cookie}={signed}; path={self.path}; "
                        f"Max-Age={self.max_age}; {self.security_flags}",
                    )
                elif not initial_session_was_empty:
                    await self.store.delete_session(session_id)
                    headers.append(
                        "Set-Cookie",
                        f"{self.session_cookie}=null; path={self.path}; "
                        f"expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.security_flags}",
                    )
            await send(message)

        await self.app(scope, receive, send_wrapper)


class UnexpectedErrorMiddleware(BaseHTTPMiddleware):
    """
    Turn exceptions no handler claimed into the error page.

    Runs inside the logging and security header middleware, so the error
    page still gets the request id and the usual headers.
    """

    def __init__(self, app: ASGIApp, handler: Callable[[Request, Exception], Awaitable[Response]]):
        super().__init__(app)
        self.handler = handler

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await self.handler(request, exc)


class LanguageMiddleware(BaseHTTPMiddleware):
    """
    Pick the page language.

    /en/... or /cy/... stores the choice in a cookie and redirects to the
    same URL without the prefix. Other requests use the cookie, or English.
    """

    def __init__(self, app: ASGIApp, cookie_name: Optional[str] = None):
        super().__init__(app)
        self.cookie_name = cookie_name or settings.LANGUAGE_COOKIE_NAME

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        query = request.url.query

        lang_from_url = get_lang_from_path(path)
        if lang_from_url:
            redirect_path = strip_lang_prefix(path)
            if query:
                redirect_path = f"{redirect_path}?{query}"
            response = RedirectResponse(redirect_path, status_code=302)
            response.set_cookie(
                self.cookie_name,
                lang_from_url,
                max_age=settings.LANGUAGE_COOKIE_MAX_AGE,
                httponly=True,
                samesite="lax",
            )
            return response

        lang_from_cookie = request.cookies.get(self.cookie_name)
        lang = lang_from_cookie if is_valid_language(lang_from_cookie) else DEFAULT_LANGUAGE

        current_path = f"{path}?{query}" if query else path
        request.state.lang = lang
        request.state.current_path = current_path
        request.state.language_toggle = build_language_toggle(lang, current_path)

        return await call_next(request)


class FeatureFlagsMiddleware(BaseHTTPMiddleware):
    """
    Resolve feature flags for the request.

    Defaults come from settings, a signed cookie can override them, and a
    query string like ?es-debugMode=on overrides both and is remembered in
    the cookie. Unknown flags and values other than on/off are ignored.
    """

    QUERY_PREFIX = "es-"

    def __init__(self, app: ASGIApp, secret_key: Optional[str] = None):
        super().__init__(app)
        self.serializer = URLSafeSerializer(secret_key or settings.SECRET_KEY, salt="feature-flags")
        self.cookie_name = settings.FEATURE_FLAGS_COOKIE_NAME

    def read_cookie(self, request: Request) -> Dict[str, str]:
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return {}
        try:
            value = self.serializer.loads(raw)
        except BadSignature:
            logger.warning("[FeatureFlags] Ignoring cookie with bad signature")
            return {}
        return value if isinstance(value, dict) else {}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        flags = dict(settings.FEATURE_FLAG_DEFAULTS)

        cookie_flags = self.read_cookie(request)
        for key, value in cookie_flags.items():
            if key in flags:
                flags[key] = value == "on"

        overrides: Dict[str, str] = {}
        for key, value in request.query_params.items():
            if not key.startswith(self.QUERY_PREFIX):
                continue
            flag_key = key[len(self.QUERY_PREFIX):]
            value = value.lower()
            if flag_key in flags and value in ("on", "off"):
                flags[flag_key] = value == "on"
                overrides[flag_key] = value

        request.state.flags = flags
        response = await call_next(request)

        if overrides:
            response.set_cookie(
                self.cookie_name,
                self.serializer.dumps({**cookie_flags, **overrides}),
                max_age=settings.FEATURE_FLAGS_COOKIE_MAX_AGE,
                httponly=True,
                samesite="lax",
            )

        return response


def normalise_ip(ip: Optional[str]) -> str:
    if not ip:
        return ""
    return ip[7:] if ip.startswith("::ffff:") else ip


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return normalise_ip(first)
    return normalise_ip(request.client.host if request.client else "")


def is_local_ip(ip: str) -> bool:
    """Localhost and private ranges, so development and internal checks are never blocked"""
    if not ip:
        return True
    if ip == "::1" or ip.startswith("127."):
        return True
    if ip.startswith("10.") or ip.startswith("192.168."):
        return True
    if ip.startswith("172."):
        parts = ip.split(".")
        if len(parts) > 1 and parts[1].isdecimal() and 16 <= int(parts[1]) <= 31:
            return True
    return False


class CountryRestrictionMiddleware(BaseHTTPMiddleware):
    """
    Block check ins from outside the UK.

    The country comes from the GeoLite2 database when one is configured,
    otherwise from a header set by the edge (CloudFront). Requests with no
    known country, from local addresses, or for bypassed paths are let
    through. A blocked visit to a check in is recorded
    against that check in.
    """

    def __init__(
        self,
        app: ASGIApp,
        enabled: Optional[bool] = None,
        service_getter: Optional[Callable] = None,
        geoip: Optional[GeoIpLookup] = None,
    ):
        super().__init__(app)
        self.enabled = settings.GEO_RESTRICTION_ENABLED if enabled is None else enabled
        if geoip is None and self.enabled:
            geoip = GeoIpLookup.from_settings()
        self.geoip = geoip
        self.header = settings.GEO_COUNTRY_HEADER
        self.allowed_country = settings.ALLOWED_COUNTRY.upper()
        self.bypass_paths = settings.GEO_BYPASS_PATHS
        self._service_getter = service_getter

    def get_service(self):
        if self._service_getter:
            return self._service_getter()
        return get_esupervision_service()

    def lookup_country(self, request: Request, ip: str) -> str:
        if self.geoip is not None:
            country_code = self.geoip.country_code(ip)
            if country_code:
                return country_code.upper()
        return (request.headers.get(self.header) or "").upper()

    async def log_outside_access(self, checkin_id: str, ip: str, country_code: str) -> None:
        try:
            await self.get_service().log_checkin_event(
                checkin_id,
                CheckinEventType.OUTSIDE_ACCESS,
                f"ip={ip} countryCode={country_code}",
            )
        except CheckinServiceError as e:
            logger.error(f"[CountryRestriction] Failed to log outside access for {checkin_id}: {e.message}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled:
            return await call_next(request)

        path = request.url.path
        if any(path.startswith(prefix) for prefix in self.bypass_paths):
            return await call_next(request)

        ip = get_client_ip(request)
        if is_local_ip(ip):
            return await call_next(request)

        country_code = self.lookup_country(request, ip)
        if not country_code or country_code == self.allowed_country:
            return await call_next(request)

        checkin_id = submission_id_from_path(path)
        logger.warning(
            f"[CountryRestriction] Blocked non-UK request from {country_code}",
            extra={"client_ip": ip, "country": country_code, "http_path": path, "checkin_id": checkin_id},
        )
        if checkin_id:
            await self.log_outside_access(checkin_id, ip, country_code)

        return render(request, "pages/outside-uk.html", status_code=403)


# Export all middleware
__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "ServerSessionMiddleware",
    "UnexpectedErrorMiddleware",
    "LanguageMiddleware",
    "FeatureFlagsMiddleware",
    "CountryRestrictionMiddleware",
    "should_skip_logging",
    "submission_id_from_path",
    "get_client_ip",
    "is_local_ip",
    "SKIP_LOGGING_PATHS",
]
