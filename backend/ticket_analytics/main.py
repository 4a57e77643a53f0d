from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticket_analytics.core.config import settings
from ticket_analytics.core.exceptions import TicketAnalyticsException
from ticket_analytics.core.logging import setup_logging
from ticket_analytics.routers import analytics, sla


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    settings.validate_runtime()

    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])
    app.include_router(sla.router, prefix="/api/sla-config", tags=["sla"])

    @app.exception_handler(TicketAnalyticsException)
    async def handle_analytics_exception(_: Request, exc: TicketAnalyticsException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
