"""
Authentication endpoints – email OTP flow with JWT session cookies.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, Response, status

from otp_gate.dependencies import CurrentUser, OtpServiceDep, create_session_cookie
from otp_gate.models import (
    AuthResponse,
    MessageResponse,
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    UserInfo,
)
from otp_gate.rate_limit import AUTH, STRICT, limiter

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/request-otp",
    response_model=OtpRequestResponse,
    operation_id="requestOtp",
    summary="Request a one-time password sent to the given email",
)
@limiter.limit(STRICT)
async def request_otp(
    request: Request, body: OtpRequest, service: OtpServiceDep
) -> OtpRequestResponse:
    """
    Send a fresh 6-digit code unless the address is disposable or must
    still wait out its backoff. Refusals are reported in the message,
    not as HTTP errors.
    """
    result = await service.request_otp(body.email)
    return OtpRequestResponse(accepted=result.accepted, message=result.message)


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    operation_id="verifyOtp",
    summary="Verify OTP and receive a JWT session cookie",
)
@limiter.limit(AUTH)
async def verify_otp(
    request: Request,
    body: OtpVerifyRequest,
    response: Response,
    service: OtpServiceDep,
) -> AuthResponse:
    """
    Consume the code. On success, set a signed JWT as an HTTP-only
    cookie and return the user info.
    """
    if not service.verify_otp(body.email, body.otp_code):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired OTP",
        )

    create_session_cookie(response, body.email)

    user = UserInfo(
        email=body.email,
        created_at=datetime.now(timezone.utc),
    )
    return AuthResponse(
        message="Authenticated successfully",
        user=user,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    operation_id="logout",
    summary="Clear the session cookie",
)
async def logout(current_user: CurrentUser, response: Response) -> MessageResponse:
    response.delete_cookie("session")
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=UserInfo,
    operation_id="getMe",
    summary="Get current authenticated user info",
)
async def get_me(current_user: CurrentUser) -> UserInfo:
    return current_user
