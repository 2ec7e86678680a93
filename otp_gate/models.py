"""Pydantic models for the OTP API."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class OtpRequest(BaseModel):
    email: EmailStr = Field(..., description="Address to send the code to")


class OtpRequestResponse(BaseModel):
    accepted: bool = Field(..., description="Whether a code was sent")
    message: str = Field(..., description="Outcome, in the display language")


class OtpVerifyRequest(BaseModel):
    email: EmailStr = Field(..., description="Address the code was sent to")
    otp_code: str = Field(..., pattern=r"^\d{6}$", description="6-digit code")


class UserInfo(BaseModel):
    email: EmailStr
    created_at: datetime


class AuthResponse(BaseModel):
    message: str
    user: UserInfo


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
