"""Main FastAPI application for the OTP gate."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from otp_gate import __version__
from otp_gate.config import DISPOSABLE_MAIL, LOG_LEVEL
from otp_gate.rate_limit import limiter, rate_limit_exceeded_handler
from otp_gate.routers import auth, health
from otp_gate.services.disposable import DisposableDomains
from otp_gate.services.email import SmtpMailer
from otp_gate.services.otp_service import OtpService
from otp_gate.services.otp_store import OtpStore
from otp_gate.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_otp_service() -> OtpService:
    """Wire the production OTP service from configuration."""
    store = OtpStore()
    mailer = SmtpMailer()
    if not mailer.enabled:
        logger.warning("SMTP disabled — codes will be logged, not emailed")
    return OtpService(
        store,
        RateLimiter(store),
        mailer,
        DisposableDomains.from_file(DISPOSABLE_MAIL),
    )


def create_app(otp_service: OtpService | None = None) -> FastAPI:
    """
    Build the application.

    Pass *otp_service* to run against a pre-built service (tests);
    otherwise one is wired from configuration when the app starts.
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.otp_service = otp_service or build_otp_service()
        logger.info("OTP gate started")
        yield
        logger.info("OTP gate stopped")

    app = FastAPI(
        title="OTP Gate API",
        description="Email one-time passcodes with per-address backoff",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    return app


app = create_app()
