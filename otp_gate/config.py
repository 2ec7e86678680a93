"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").upper()

# ── OTP lifecycle ─────────────────────────────────────────────────────────

# Spacing required after the first send; doubles with every further send.
OTP_BASE_INTERVAL_SECONDS: float = float(os.getenv("OTP_BASE_INTERVAL_SECONDS", "60"))

# How long an issued code stays valid (6 hours).
OTP_VALIDITY_SECONDS: float = float(os.getenv("OTP_VALIDITY_SECONDS", str(6 * 60 * 60)))

# Jitter absorbed when an expiry timer checks the send it was scheduled for.
OTP_EXPIRY_TOLERANCE_SECONDS: float = float(os.getenv("OTP_EXPIRY_TOLERANCE_SECONDS", "30"))

# Display language for user-facing messages ("fr" or "en").
OTP_LANGUAGE: str = os.getenv("OTP_LANGUAGE", "fr").lower()

# Newline-separated list of throwaway mail domains. Unset → nothing blocked.
DISPOSABLE_MAIL: str | None = os.getenv("DISPOSABLE_MAIL") or None

# ── Outgoing mail identity ────────────────────────────────────────────────

APP_DNS: str = os.getenv("APP_DNS", "localhost")
API_EMAIL: str = os.getenv("API_EMAIL", "noreply@localhost")

# ── JWT ───────────────────────────────────────────────────────────────────

JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM: str = "HS256"
JWT_EXPIRY_DAYS: int = int(os.getenv("JWT_EXPIRY_DAYS", "7"))

# ── SMTP ──────────────────────────────────────────────────────────────────

SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Any non-empty value accepts self-signed server certificates.
SMTP_TLS_SELFSIGNED: bool = bool(os.getenv("SMTP_TLS_SELFSIGNED"))

# Set to "false" to force console-only mode even when an SMTP host is set.
# Handy for local development to avoid burning real SMTP quota.
_SMTP_ENABLED_OVERRIDE: str = os.getenv("SMTP_ENABLED", "auto")


def smtp_enabled() -> bool:
    """True when SMTP should actually send emails.

    Controlled by SMTP_ENABLED env var:
      • "auto" (default) — send if a host is configured
      • "true"  — always send (will fail if the host is missing)
      • "false" — never send, log to console instead

    Credentials are optional: relays on a private network often accept
    unauthenticated mail, so only the host is required.
    """
    if _SMTP_ENABLED_OVERRIDE.lower() == "false":
        return False
    if _SMTP_ENABLED_OVERRIDE.lower() == "true":
        return True
    return bool(SMTP_HOST)
