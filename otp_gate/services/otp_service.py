"""
OTP request / verification flow.

A request to send goes through:

1.  the disposable-domain block-list (no state is read or written),
2.  the per-address rate limiter,
3.  code generation in the store,
4.  delivery through the mailer,
5.  on successful delivery only, the send is committed: timestamp,
    backoff counter and expiry timer.

A failed delivery restores the previously delivered code and leaves the
backoff state untouched, so the user can retry at once.  Verification
goes straight to the store and ignores the limiter.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from otp_gate import config
from otp_gate.messages import MessageCatalog, get_catalog
from otp_gate.services.disposable import DisposableDomains
from otp_gate.services.email import Mailer, build_otp_message
from otp_gate.services.otp_store import OtpStore
from otp_gate.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpRequestResult:
    accepted: bool
    message: str


class OtpService:
    def __init__(
        self,
        store: OtpStore,
        limiter: RateLimiter,
        mailer: Mailer,
        disposable: DisposableDomains | None = None,
        *,
        language: str = config.OTP_LANGUAGE,
        app_dns: str = config.APP_DNS,
        sender: str = config.API_EMAIL,
        serialize_requests: bool = True,
    ) -> None:
        self._store = store
        self._limiter = limiter
        self._mailer = mailer
        self._disposable = disposable or DisposableDomains()
        self._catalog: MessageCatalog = get_catalog(language)
        self._app_dns = app_dns
        self._sender = sender
        self._serialize = serialize_requests
        # address → (lock, number of requests holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @property
    def store(self) -> OtpStore:
        return self._store

    # ── Public API ─────────────────────────────────────────────────────

    async def request_otp(self, address: str) -> OtpRequestResult:
        if self._disposable.is_disposable_address(address):
            logger.info("Refused code for disposable address %s", address)
            return OtpRequestResult(accepted=False, message=self._catalog.disposable)

        async with self._serialized(address):
            decision = self._limiter.check(address)
            if not decision.allowed:
                return OtpRequestResult(
                    accepted=False,
                    message=self._catalog.format_wait(decision.wait_seconds),
                )

            previous = self._store.get(address)
            previous_code = previous.code if previous is not None else None
            code = self._store.generate(address)
            message = build_otp_message(
                address,
                code,
                self._catalog,
                validity_seconds=self._store.validity_seconds,
                app_dns=self._app_dns,
                sender=self._sender,
            )

            try:
                await self._mailer.send(message)
            except Exception:
                logger.exception("SendOTP error for %s", address)
                self._store.restore(address, code, previous_code)
                return OtpRequestResult(accepted=False, message=self._catalog.send_failed)
            except BaseException:
                # Cancelled mid-delivery: the code may never have left
                self._store.restore(address, code, previous_code)
                raise

            self._store.commit_send(address)

        return OtpRequestResult(accepted=True, message=self._catalog.sent)

    def verify_otp(self, address: str, code: str | None) -> bool:
        return self._store.validate(address, code)

    # ── Per-address serialisation ──────────────────────────────────────

    @asynccontextmanager
    async def _serialized(self, address: str) -> AsyncIterator[None]:
        """Hold the address lock across check → generate → deliver → commit."""
        if not self._serialize:
            yield
            return

        lock, users = self._locks.get(address, (asyncio.Lock(), 0))
        self._locks[address] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[address]
            if users == 1:
                del self._locks[address]
            else:
                self._locks[address] = (lock, users - 1)
