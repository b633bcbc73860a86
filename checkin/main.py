from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import RedirectResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from checkin.core.config import settings
from checkin.core.exceptions import (
    CheckinExpiredError,
    CheckinNotFoundError,
    CheckinServiceError,
    EsupervisionApiError,
    FormValidationError,
    SessionExpiredError,
)
from checkin.core.logging_config import logger
from checkin.core.middleware import (
    CountryRestrictionMiddleware,
    FeatureFlagsMiddleware,
    LanguageMiddleware,
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
    ServerSessionMiddleware,
    UnexpectedErrorMiddleware,
)
from checkin.core.redis_client import redis_client
from checkin.core.rate_limiter import limiter, rate_limit_exceeded_handler
from checkin.core.session import flash
from checkin.core.templates import render
from checkin.api.router import api_router
from checkin.services import audit_service
from checkin.utils.error_reference import build_error_context, generate_error_reference


STATIC_DIR = settings.BASE_DIR / "static"


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.SECRET_KEY or settings.SECRET_KEY == "CHANGE_ME":
        errors.append("SECRET_KEY is not set or using default value")

    if settings.is_production and not settings.SESSION_HTTPS_ONLY:
        errors.append("SESSION_HTTPS_ONLY must be enabled in production")

    if not settings.ESUPERVISION_API_URL:
        errors.append("ESUPERVISION_API_URL is not set")

    if settings.AUDIT_ENABLED and not settings.AUDIT_SQS_QUEUE_URL:
        warnings.append("AUDIT_ENABLED but AUDIT_SQS_QUEUE_URL not set - audit events will not be sent")

    if not settings.RATE_LIMIT_ENABLED:
        warnings.append("RATE_LIMIT_ENABLED is false - identity check is not rate limited")

    if not await redis_client.ping():
        warnings.append("Redis is not reachable at REDIS_URL - sessions cannot be stored")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"eSupervision API: {settings.ESUPERVISION_API_URL}")
    logger.info(f"Country restriction: {'on' if settings.GEO_RESTRICTION_ENABLED else 'off'}")
    logger.info("=" * 60)

    await validate_critical_config()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await redis_client.disconnect()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Citizen facing pages for online probation check ins",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.is_dev_mode() else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.is_dev_mode() else None,
    lifespan=lifespan,
    redirect_slashes=False,
)


async def render_error_page(request: Request, exc: Exception, status_code: int):
    error_reference = generate_error_reference(getattr(request.state, "request_id", None))
    context = build_error_context(request, exc, error_reference)

    logger.log_error_with_context(
        exc,
        context=f"{request.method} {request.url.path}",
        error_reference=error_reference,
        checkin_id=context["submission_id"],
    )

    await audit_service.log_audit_event(
        "ERROR_OCCURRED",
        "system",
        subject_id=context["submission_id"],
        subject_type="CHECKIN",
        correlation_id=error_reference,
        details={"status": status_code, "errorType": type(exc).__name__, "path": request.url.path},
    )

    message = None
    if isinstance(exc, EsupervisionApiError) and exc.user_message:
        message = exc.user_message
    elif settings.is_dev_mode():
        message = str(exc)

    return render(
        request,
        "pages/error.html",
        {
            "status": status_code,
            "message": message,
            "errorReference": error_reference,
            "apiErrorUuid": context["api_error_uuid"],
            "showDetails": settings.is_dev_mode(),
            "errorContext": context,
        },
        status_code=status_code,
    )


async def unexpected_error_page(request: Request, exc: Exception):
    return await render_error_page(request, exc, 500)


# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 0. Unexpected errors become the error page (innermost, inside logging and headers)
app.add_middleware(UnexpectedErrorMiddleware, handler=unexpected_error_page)

# 1. Country restriction (needs language and session)
app.add_middleware(CountryRestrictionMiddleware)

# 2. Feature flags from query string and signed cookie
app.add_middleware(FeatureFlagsMiddleware)

# 3. Language: /cy/... and /en/... set the cookie and redirect
app.add_middleware(LanguageMiddleware)

# 4. Session: answers, authorised submission and flashes in Redis, id in a signed cookie
app.add_middleware(
    ServerSessionMiddleware,
    secret_key=settings.SECRET_KEY,
    store=redis_client,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.SESSION_HTTPS_ONLY,
)

# 5. Request size limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)

# 6. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 7. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)


# Exception handlers
@app.exception_handler(CheckinNotFoundError)
async def checkin_not_found_handler(request: Request, exc: CheckinNotFoundError):
    logger.info(f"[Checkin] Not found: {exc.submission_id}")
    return render(request, "pages/not-found.html", status_code=404)


@app.exception_handler(CheckinExpiredError)
async def checkin_expired_handler(request: Request, exc: CheckinExpiredError):
    logger.info(f"[Checkin] Expired: {exc.submission_id}")
    return render(request, "pages/expired.html", status_code=410)


@app.exception_handler(SessionExpiredError)
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    logger.info(f"[Session] Not authorised for checkin {exc.submission_id}, showing timeout page")
    return render(request, "pages/timeout.html", {"submissionId": exc.submission_id})


@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError):
    flash(request, "validationErrors", exc.errors)
    if exc.form_body:
        flash(request, "formBody", exc.form_body)
    return RedirectResponse(exc.redirect_url, status_code=303)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return render(request, "pages/not-found.html", status_code=404)

    return render(
        request,
        "pages/error.html",
        {"status": exc.status_code, "message": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(CheckinServiceError)
async def checkin_service_error_handler(request: Request, exc: CheckinServiceError):
    status_code = exc.status_code if 400 <= exc.status_code < 600 else 500
    return await render_error_page(request, exc, status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    return await render_error_page(request, exc, 500)


# Static assets go before the routes: /{submission_id} matches any segment
app.mount("/assets", StaticFiles(directory=str(STATIC_DIR)), name="assets")

app.include_router(api_router)


def run():
    import uvicorn
    uvicorn.run(
        "checkin.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
