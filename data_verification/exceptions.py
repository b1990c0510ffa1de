"""
Verification Exceptions
=======================
Exception classes raised by code generation and verification.
"""

from typing import Optional


class DataVerificationError(Exception):
    """Base exception for all verification failures."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        verification_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.address = address
        self.verification_code = verification_code


class LimitError(DataVerificationError):
    """
    Raised when an issuance or attempt limit is hit.

    Callers should treat this as "try again later".
    """

    TOO_FREQUENT = "too_frequent"
    HOURLY_LIMIT = "hourly_limit"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"

    def __init__(self, message: str, reason: str, **context):
        super().__init__(message, **context)
        self.reason = reason


class NotFoundError(DataVerificationError):
    """Raised when no unexpired, unvalidated code matches."""
    pass


class VerificationError(DataVerificationError):
    """Raised when the supplied one-time pass is incorrect."""

    def __init__(self, message: str, attempts: int = 0, **context):
        super().__init__(message, **context)
        self.attempts = attempts
