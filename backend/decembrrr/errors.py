# backend/decembrrr/errors.py
"""
Error catalog.

Codes follow ERR_{category}{sequence}:
  1xxx config, 2xxx auth, 3xxx class, 4xxx payment,
  5xxx calendar, 6xxx engine input, 9xxx generic.

`message` and `hints` are written for presidents and students.
`detail` is developer context and is only rendered on request.
"""
from __future__ import annotations

from typing import Optional

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class ErrorCode:
    BACKEND_URL_MISSING = "ERR_1001"
    BACKEND_KEY_MISSING = "ERR_1002"
    BACKEND_UNREACHABLE = "ERR_1003"

    AUTH_NOT_AUTHENTICATED = "ERR_2001"
    AUTH_SESSION_EXPIRED = "ERR_2002"
    AUTH_PROVIDER_FAILED = "ERR_2003"
    AUTH_PROFILE_NOT_FOUND = "ERR_2004"

    CLASS_NOT_FOUND = "ERR_3001"
    CLASS_INVITE_INVALID = "ERR_3002"
    CLASS_ALREADY_MEMBER = "ERR_3003"
    CLASS_CREATE_FAILED = "ERR_3004"

    PAYMENT_STUDENT_NOT_FOUND = "ERR_4001"
    PAYMENT_INVALID_AMOUNT = "ERR_4002"
    PAYMENT_RECORD_FAILED = "ERR_4003"
    PAYMENT_NOT_PRESIDENT = "ERR_4004"

    CALENDAR_DATE_EXISTS = "ERR_5001"
    CALENDAR_SAVE_FAILED = "ERR_5002"
    CALENDAR_EXCEPTION_NOT_FOUND = "ERR_5003"

    INVALID_ARGUMENT = "ERR_6001"

    NETWORK_ERROR = "ERR_9001"
    UNKNOWN = "ERR_9999"


MESSAGES: dict[str, str] = {
    ErrorCode.BACKEND_URL_MISSING: "The app isn't set up yet. Please contact your administrator.",
    ErrorCode.BACKEND_KEY_MISSING: "The app isn't set up yet. Please contact your administrator.",
    ErrorCode.BACKEND_UNREACHABLE: "We can't reach our servers right now. Please try again in a moment.",
    ErrorCode.AUTH_NOT_AUTHENTICATED: "You need to sign in first before doing that.",
    ErrorCode.AUTH_SESSION_EXPIRED: "Your session has expired. Please sign in again to continue.",
    ErrorCode.AUTH_PROVIDER_FAILED: "Sign-in didn't go through. Please try again.",
    ErrorCode.AUTH_PROFILE_NOT_FOUND: "We couldn't find your profile.",
    ErrorCode.CLASS_NOT_FOUND: "This class doesn't exist or may have been removed.",
    ErrorCode.CLASS_INVITE_INVALID: "That invite code didn't work.",
    ErrorCode.CLASS_ALREADY_MEMBER: "You're already part of a class.",
    ErrorCode.CLASS_CREATE_FAILED: "We couldn't create the class right now.",
    ErrorCode.PAYMENT_STUDENT_NOT_FOUND: "We couldn't find that student. They may no longer be in your class.",
    ErrorCode.PAYMENT_INVALID_AMOUNT: "Please enter a valid payment amount greater than zero.",
    ErrorCode.PAYMENT_RECORD_FAILED: "The payment couldn't be saved.",
    ErrorCode.PAYMENT_NOT_PRESIDENT: "Only the class president can record payments.",
    ErrorCode.CALENDAR_DATE_EXISTS: "That date is already marked as a no-class day.",
    ErrorCode.CALENDAR_SAVE_FAILED: "We couldn't save that date.",
    ErrorCode.CALENDAR_EXCEPTION_NOT_FOUND: "That no-class mark no longer exists.",
    ErrorCode.INVALID_ARGUMENT: "The request had an invalid value.",
    ErrorCode.NETWORK_ERROR: "You seem to be offline. Check your internet connection and try again.",
    ErrorCode.UNKNOWN: "Something went wrong.",
}

HINTS: dict[str, list[str]] = {
    ErrorCode.BACKEND_URL_MISSING: ["Ask the operator to set LEDGER_RPC_URL."],
    ErrorCode.BACKEND_KEY_MISSING: ["Ask the operator to set LEDGER_RPC_KEY."],
    ErrorCode.BACKEND_UNREACHABLE: ["Check your internet connection.", "Try again in a few minutes."],
    ErrorCode.AUTH_SESSION_EXPIRED: ["Sign out and sign in again."],
    ErrorCode.AUTH_PROVIDER_FAILED: ["Try again.", "If it keeps failing, contact your administrator."],
    ErrorCode.AUTH_PROFILE_NOT_FOUND: ["Try signing out and back in."],
    ErrorCode.CLASS_INVITE_INVALID: ["Double-check the code from your class president."],
    ErrorCode.CLASS_ALREADY_MEMBER: ["Leave your current class first."],
    ErrorCode.CLASS_CREATE_FAILED: ["Try again in a moment."],
    ErrorCode.PAYMENT_STUDENT_NOT_FOUND: ["Refresh the member list.", "Scan the student's QR code again."],
    ErrorCode.PAYMENT_INVALID_AMOUNT: ["Enter an amount greater than zero."],
    ErrorCode.PAYMENT_RECORD_FAILED: ["Try again.", "If it keeps failing, contact your administrator."],
    ErrorCode.CALENDAR_DATE_EXISTS: ["Pick a different date, or remove the existing mark first."],
    ErrorCode.CALENDAR_SAVE_FAILED: ["Try again."],
    ErrorCode.CALENDAR_EXCEPTION_NOT_FOUND: ["Refresh the calendar."],
    ErrorCode.NETWORK_ERROR: ["Check your internet connection and try again."],
    ErrorCode.UNKNOWN: ["Try again.", "If it keeps happening, contact your administrator."],
}


class AppError(Exception):
    code: str = ErrorCode.UNKNOWN
    status_code: int = 500

    def __init__(self, detail: Optional[str] = None, *, code: Optional[str] = None) -> None:
        if code is not None:
            self.code = code
        self.detail = detail
        self.message = MESSAGES.get(self.code, MESSAGES[ErrorCode.UNKNOWN])
        self.hints = list(HINTS.get(self.code, []))
        super().__init__(f"{self.message} ({detail})" if detail else self.message)

    def to_payload(self, *, include_detail: bool = False) -> dict:
        body: dict = {"code": self.code, "message": self.message, "hints": self.hints}
        if include_detail and self.detail:
            body["detail"] = self.detail
        return {"error": body}


class ConfigurationError(AppError):
    code = ErrorCode.BACKEND_URL_MISSING
    status_code = 503


class AuthError(AppError):
    code = ErrorCode.AUTH_NOT_AUTHENTICATED
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ClassNotFound(NotFoundError):
    code = ErrorCode.CLASS_NOT_FOUND


class InviteCodeInvalid(NotFoundError):
    code = ErrorCode.CLASS_INVITE_INVALID


class StudentNotFound(NotFoundError):
    code = ErrorCode.PAYMENT_STUDENT_NOT_FOUND


class ExceptionNotFound(NotFoundError):
    code = ErrorCode.CALENDAR_EXCEPTION_NOT_FOUND


class ValidationError(AppError):
    status_code = 422


class InvalidAmount(ValidationError):
    code = ErrorCode.PAYMENT_INVALID_AMOUNT


class DuplicateExceptionError(ValidationError):
    code = ErrorCode.CALENDAR_DATE_EXISTS
    status_code = 409


class AlreadyMember(ValidationError):
    code = ErrorCode.CLASS_ALREADY_MEMBER
    status_code = 409


class InvalidArgument(ValidationError):
    code = ErrorCode.INVALID_ARGUMENT


class RecordFailed(AppError):
    code = ErrorCode.PAYMENT_RECORD_FAILED
    status_code = 502


class NetworkError(AppError):
    code = ErrorCode.NETWORK_ERROR
    status_code = 503


def resolve_error(exc: BaseException) -> AppError:
    """Map any exception onto the catalog. AppErrors pass through unchanged."""
    if isinstance(exc, AppError):
        return exc

    msg = str(exc)

    if isinstance(exc, IntegrityError) and "no_class_dates" in msg:
        return DuplicateExceptionError(msg)
    if isinstance(exc, SQLAlchemyError):
        return RecordFailed(msg)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(msg)
    if "JWT expired" in msg or "token is expired" in msg:
        return AuthError(msg, code=ErrorCode.AUTH_SESSION_EXPIRED)
    if "violates row-level security" in msg:
        return RecordFailed("policy denied the operation")

    return AppError(msg or None)
