import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from hotelpms.api import (
    routes_accounts,
    routes_auth,
    routes_billing,
    routes_budgets,
    routes_categories,
    routes_dashboard,
    routes_expenses,
    routes_guests,
    routes_health,
    routes_housekeeping,
    routes_hr_attendance,
    routes_hr_employees,
    routes_hr_leave,
    routes_hr_payroll,
    routes_hr_performance,
    routes_jobs,
    routes_reports,
    routes_reservations,
    routes_rooms,
    routes_tax,
    routes_transactions,
    routes_ui,
    routes_users,
)
from hotelpms.core.config import get_settings
from hotelpms.core.exceptions import DomainError
from hotelpms.core.logging import logger, setup_logging

settings = get_settings()

# Initialize Sentry for error monitoring (if configured)
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        send_default_pii=False,
        environment=settings.environment,
        traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def create_app() -> FastAPI:
    setup_logging("DEBUG" if settings.debug else "INFO")
    app = FastAPI(
        title=settings.app_name,
        description="Hotel property management: front office, accounting and HR.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
        else:
            logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    # Trust only configured proxy hosts (default: localhost only)
    trusted = (
        [h.strip() for h in settings.trusted_proxy_hosts.split(",") if h.strip()]
        if settings.trusted_proxy_hosts
        else ["127.0.0.1"]
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=trusted)

    @app.get("/")
    async def root_redirect():
        return RedirectResponse(url="/ui/dashboard")

    app.include_router(routes_health.router)
    app.include_router(routes_auth.router)
    app.include_router(routes_users.router)
    app.include_router(routes_jobs.router)
    # Front office
    app.include_router(routes_rooms.router)
    app.include_router(routes_guests.router)
    app.include_router(routes_reservations.router)
    app.include_router(routes_billing.router)
    app.include_router(routes_housekeeping.router)
    app.include_router(routes_dashboard.router)
    # Accounting
    app.include_router(routes_accounts.router)
    app.include_router(routes_categories.router)
    app.include_router(routes_transactions.router)
    app.include_router(routes_expenses.router)
    app.include_router(routes_budgets.router)
    app.include_router(routes_tax.router)
    app.include_router(routes_reports.router)
    # HR
    app.include_router(routes_hr_employees.router)
    app.include_router(routes_hr_attendance.router)
    app.include_router(routes_hr_leave.router)
    app.include_router(routes_hr_payroll.router)
    app.include_router(routes_hr_performance.router)
    app.include_router(routes_ui.router)

    return app


app = create_app()
