"""Application error taxonomy. Routers and services raise these; main.py renders them."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, errors: list[dict[str, Any]] | None = None, **extra: Any):
        self.message = message or self.default_message
        self.errors = errors
        # Extra top-level keys for the error body, e.g. remainingAttempts
        self.extra = extra
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid email or password"


class InvalidToken(AppError):
    status_code = 401
    default_message = "Invalid or expired token"


class Forbidden(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"


class InvalidState(AppError):
    status_code = 409
    default_message = "Invalid state transition"


class InvalidOtp(AppError):
    status_code = 400
    default_message = "Invalid or expired OTP. Please request a new one."


class OtpExpired(AppError):
    status_code = 400
    default_message = "OTP has expired. Please request a new one."


class AttemptsExhausted(AppError):
    status_code = 400
    default_message = "Maximum verification attempts exceeded. Please request a new OTP."


class DeliveryError(AppError):
    status_code = 503
    default_message = "Failed to send email. Please try again."


class InternalError(AppError):
    status_code = 500
