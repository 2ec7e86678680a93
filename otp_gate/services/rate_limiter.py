"""
Per-address send limiter with exponential backoff.

Reads the send bookkeeping kept on each OtpRecord and decides whether
another code may be sent now.  The first resend waits the base interval,
every further consecutive send doubles it (1×, 2×, 4×, …), and the wait
is never longer than the validity window of the code itself.

The check is read-only: a send is only counted once its message has been
delivered (see ``OtpStore.commit_send``), so a failed delivery does not
count against the user.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from otp_gate.config import OTP_BASE_INTERVAL_SECONDS
from otp_gate.services.otp_store import OtpStore

logger = logging.getLogger(__name__)

# 2**32 times any sane base interval is far past any validity window.
_MAX_EXPONENT = 32


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    wait_seconds: int = 0


class RateLimiter:
    def __init__(
        self,
        store: OtpStore,
        *,
        base_interval_seconds: float = OTP_BASE_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._base = base_interval_seconds

    def required_interval(self, send_count: int) -> float:
        """Spacing required after *send_count* consecutive sends."""
        exponent = min(max(0, send_count - 1), _MAX_EXPONENT)
        return min(self._base * 2**exponent, self._store.validity_seconds)

    def check(self, address: str) -> RateLimitDecision:
        record = self._store.get(address)
        if record is None or record.last_send_time is None:
            return RateLimitDecision(allowed=True)

        elapsed = self._store.clock() - record.last_send_time
        limit = self.required_interval(record.send_count)
        if elapsed >= limit:
            return RateLimitDecision(allowed=True)

        wait = min(
            math.ceil(limit - elapsed),
            math.ceil(self._store.validity_seconds),
        )
        logger.info(
            "Send to %s refused: %d sends, %ds left", address, record.send_count, wait
        )
        return RateLimitDecision(allowed=False, wait_seconds=wait)
