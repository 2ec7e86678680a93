"""
IP-level request throttling using slowapi.

Two tiers on top of the per-address backoff in OtpService:
  • strict – 5/min  (OTP request endpoint – one IP spraying many addresses)
  • auth   – 10/min (OTP verify endpoint – prevents brute-force)

The limiter keys on client IP.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Named rate strings for use in @limiter.limit() decorators
STRICT = "5/minute"     # OTP request (email sending)
AUTH = "10/minute"      # OTP verification


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
