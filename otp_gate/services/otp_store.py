"""
In-memory store of one-time passcodes, one record per email address.

The store owns generation, one-shot validation and timed eviction of
codes.  It also carries the send bookkeeping (last send time, send count)
that the rate limiter reads, so both share a single record per address.

Expiry works two ways:

*   ``commit_send`` schedules a timer for the end of the validity window.
    When it fires the record is dropped only if it still belongs to the
    send that scheduled it; a newer send simply outlives an older timer.
*   Every lookup treats a record past its validity window as absent, so
    codes expire on time even when no event loop is running the timers.

Usage::

    store = OtpStore()
    code = store.generate("a@b.com")
    ...                                  # deliver the code
    store.commit_send("a@b.com")
    store.validate("a@b.com", code)      # True, then False forever
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from functools import partial
from random import Random
from typing import Callable

from otp_gate.config import OTP_EXPIRY_TOLERANCE_SECONDS, OTP_VALIDITY_SECONDS

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
_DIGITS = "0123456789"

Clock = Callable[[], float]
Scheduler = Callable[[float, Callable[[], None]], object]


@dataclass
class OtpRecord:
    code: str
    last_send_time: float | None = None
    send_count: int = 0


def schedule_on_running_loop(delay: float, callback: Callable[[], None]) -> object:
    """Run *callback* after *delay* seconds on the current event loop.

    Outside a running loop nothing is scheduled; lazy expiry on lookup
    still removes the record once it is past its validity window.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop, relying on lazy expiry")
        return None
    return loop.call_later(delay, callback)


class OtpStore:
    """
    Owned map of address → OtpRecord.

    Not shared between instances: tests and tenants each build their own.
    """

    def __init__(
        self,
        *,
        validity_seconds: float = OTP_VALIDITY_SECONDS,
        expiry_tolerance_seconds: float = OTP_EXPIRY_TOLERANCE_SECONDS,
        clock: Clock = time.monotonic,
        scheduler: Scheduler = schedule_on_running_loop,
        rng: Random | None = None,
    ) -> None:
        self._records: dict[str, OtpRecord] = {}
        self._validity = validity_seconds
        self._tolerance = expiry_tolerance_seconds
        self._clock = clock
        self._scheduler = scheduler
        self._rng = rng or secrets.SystemRandom()

    # ── Introspection ──────────────────────────────────────────────────

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def validity_seconds(self) -> float:
        return self._validity

    def __len__(self) -> int:
        return len(self._records)

    def get(self, address: str) -> OtpRecord | None:
        """Live record for *address*, evicting it first if it has expired."""
        record = self._records.get(address)
        if record is not None and self._is_expired(record):
            del self._records[address]
            logger.debug("Evicted expired code for %s on access", address)
            return None
        return record

    def _is_expired(self, record: OtpRecord) -> bool:
        if record.last_send_time is None:
            return False
        return self._clock() - record.last_send_time >= self._validity

    # ── Lifecycle ──────────────────────────────────────────────────────

    def generate(self, address: str) -> str:
        """Issue a fresh code, keeping the send bookkeeping of any live record."""
        code = "".join(self._rng.choice(_DIGITS) for _ in range(CODE_LENGTH))
        record = self.get(address)
        if record is None:
            self._records[address] = OtpRecord(code=code)
        else:
            record.code = code
        return code

    def commit_send(self, address: str) -> float | None:
        """Record a delivered code and schedule its expiry.

        Returns the send timestamp, or None when the record disappeared
        while the message was in flight (validated with the previous code).
        """
        record = self._records.get(address)
        if record is None:
            logger.warning("Code for %s was consumed before its send was committed", address)
            return None

        sent_at = self._clock()
        record.last_send_time = sent_at
        record.send_count += 1
        self._scheduler(self._validity, partial(self.expire, address, sent_at))
        return sent_at

    def expire(self, address: str, sent_at: float) -> bool:
        """Timer callback: drop the record if it still belongs to *sent_at*."""
        record = self._records.get(address)
        if record is None or record.last_send_time is None:
            return False
        if abs(record.last_send_time - sent_at) > self._tolerance:
            # A newer send refreshed this record; its own timer will handle it.
            return False
        if self._clock() - record.last_send_time < self._validity - self._tolerance:
            return False
        del self._records[address]
        logger.debug("Code for %s expired", address)
        return True

    def validate(self, address: str, code: str | None) -> bool:
        """One-shot check: True (and the record is consumed) on exact match."""
        if not code:
            return False
        record = self.get(address)
        if record is None or record.code != code:
            return False
        del self._records[address]
        return True

    def restore(
        self, address: str, failed_code: str, previous_code: str | None
    ) -> None:
        """Undo a ``generate`` whose message could not be delivered.

        The previously delivered code becomes valid again; a record that
        was created for the failed attempt and never committed is dropped.
        Nothing happens once another request has replaced *failed_code*.
        """
        record = self._records.get(address)
        if record is None or record.code != failed_code:
            return
        if previous_code is not None:
            record.code = previous_code
        elif record.last_send_time is None:
            del self._records[address]
