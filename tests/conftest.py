"""
Shared test fixtures.

Provides an OtpService wired to:
  • a FakeClock (time moves only when a test advances it)
  • a ManualScheduler (expiry timers are collected, not run)
  • a RecordingMailer (no SMTP)
  • a small disposable-domain block-list

and FastAPI TestClients that run the app lifespan against that service.
"""

from __future__ import annotations

from random import Random

import pytest
from fastapi.testclient import TestClient

from otp_gate.dependencies import get_current_user
from otp_gate.main import create_app
from otp_gate.services.disposable import DisposableDomains
from otp_gate.services.otp_service import OtpService
from otp_gate.services.otp_store import OtpStore
from otp_gate.services.rate_limiter import RateLimiter
from tests.mocks.models import (
    BASE_INTERVAL,
    DISPOSABLE_DOMAINS,
    MOCK_USER,
    TOLERANCE,
    VALIDITY,
)
from tests.mocks.services import FakeClock, ManualScheduler, RecordingMailer


# ── Core objects ───────────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def store(clock: FakeClock, scheduler: ManualScheduler) -> OtpStore:
    return OtpStore(
        validity_seconds=VALIDITY,
        expiry_tolerance_seconds=TOLERANCE,
        clock=clock,
        scheduler=scheduler,
        rng=Random(1234),
    )


@pytest.fixture()
def rate_limiter(store: OtpStore) -> RateLimiter:
    return RateLimiter(store, base_interval_seconds=BASE_INTERVAL)


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def otp_service(
    store: OtpStore, rate_limiter: RateLimiter, mailer: RecordingMailer
) -> OtpService:
    return OtpService(
        store,
        rate_limiter,
        mailer,
        DisposableDomains(DISPOSABLE_DOMAINS),
        language="fr",
        app_dns="deces.example.org",
        sender="noreply@example.org",
    )


# ── HTTP clients ───────────────────────────────────────────────────────────


@pytest.fixture()
def _test_env(monkeypatch, otp_service: OtpService):
    """
    Internal fixture: an app instance bound to the fake-backed service,
    with IP-level throttling disabled.
    """
    from otp_gate.rate_limit import limiter as _limiter

    monkeypatch.setattr(_limiter, "enabled", False)
    return create_app(otp_service=otp_service)


@pytest.fixture()
def client(_test_env) -> TestClient:
    """
    TestClient with auth bypassed.

    Uses a context manager so the lifespan runs (service wiring).
    """
    app = _test_env

    async def _mock_current_user():
        return MOCK_USER

    app.dependency_overrides[get_current_user] = _mock_current_user

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(_test_env) -> TestClient:
    """
    TestClient without auth overrides — requests are rejected unless
    a session cookie is provided.
    """
    with TestClient(_test_env, raise_server_exceptions=False) as tc:
        yield tc
