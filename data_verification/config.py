"""
Verification Configuration
==========================
Limits and generation settings injected into CodeManager.
"""

import os
from dataclasses import dataclass, field

from .models import MAX_PASS_LENGTH


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class VerificationConfig:
    """Configuration for code issuance and verification."""
    pass_length: int = field(
        default_factory=lambda: _env_int("DATA_VERIFICATION_PASS_LENGTH", 6)
    )
    allowed_symbols: str = field(
        default_factory=lambda: os.environ.get(
            "DATA_VERIFICATION_ALLOWED_SYMBOLS", "0123456789"
        )
    )
    creation_code_threshold: int = field(  # seconds between issuances
        default_factory=lambda: _env_int("DATA_VERIFICATION_CREATION_THRESHOLD", 60)
    )
    limit_per_hour: int = field(
        default_factory=lambda: _env_int("DATA_VERIFICATION_LIMIT_PER_HOUR", 10)
    )
    password_validation_period: int = field(  # seconds
        default_factory=lambda: _env_int("DATA_VERIFICATION_VALIDATION_PERIOD", 300)
    )
    max_attempts: int = field(
        default_factory=lambda: _env_int("DATA_VERIFICATION_MAX_ATTEMPTS", 3)
    )
    reject_exhausted_early: bool = field(
        default_factory=lambda: _env_bool("DATA_VERIFICATION_REJECT_EXHAUSTED_EARLY", False)
    )

    def validate(self) -> "VerificationConfig":
        """
        Check the settings are usable.

        Raises:
            ValueError: If a length, period or alphabet is unusable
        """
        if not 1 <= self.pass_length <= MAX_PASS_LENGTH:
            raise ValueError(f"pass_length must be between 1 and {MAX_PASS_LENGTH}")
        if not self.allowed_symbols:
            raise ValueError("allowed_symbols must not be empty")
        if self.creation_code_threshold < 0:
            raise ValueError("creation_code_threshold must not be negative")
        if self.limit_per_hour < 0:
            raise ValueError("limit_per_hour must not be negative")
        if self.password_validation_period < 1:
            raise ValueError("password_validation_period must be positive")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must not be negative")
        return self

    @classmethod
    def from_env(cls) -> "VerificationConfig":
        """Build a validated config from DATA_VERIFICATION_* variables."""
        return cls().validate()
