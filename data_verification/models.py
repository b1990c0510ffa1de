"""
Verification Models
===================
Data models for issued codes and the addresses they are bound to.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

MAX_PASS_LENGTH = 64  # width of the stored pass column


class AddressType(str, Enum):
    """Kinds of contact address a code can be sent to."""
    PHONE = "phone"
    EMAIL = "email"
    OTHER = "other"


_PHONE_PATTERN = re.compile(r'^\+?[\d\s().-]{7,}$')


def normalize_phone(phone: str, default_country: str = "1") -> str:
    """
    Normalize a phone number to E.164 format.
    
    Args:
        phone: Raw phone number
        default_country: Country code (without +) for 10-digit numbers
        
    Returns:
        E.164 formatted number
    """
    digits = re.sub(r'\D', '', phone)
    
    if phone.strip().startswith('+'):
        return f"+{digits}"
    
    # 10 digits: national number without country code
    if len(digits) == 10:
        return f"+{default_country}{digits}"
    
    return f"+{digits}"


@dataclass(frozen=True)
class Address:
    """A normalized contact address."""
    value: str
    kind: AddressType = AddressType.OTHER

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Address must not be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def phone(cls, raw: str) -> "Address":
        if not raw or not re.search(r'\d', raw):
            raise ValueError(f"Not a phone number: {raw!r}")
        return cls(normalize_phone(raw), AddressType.PHONE)

    @classmethod
    def email(cls, raw: str) -> "Address":
        cleaned = (raw or "").strip().lower()
        if "@" not in cleaned:
            raise ValueError(f"Not an email address: {raw!r}")
        return cls(cleaned, AddressType.EMAIL)

    @classmethod
    def parse(cls, raw: str) -> "Address":
        """Detect the address kind from its shape and normalize it."""
        cleaned = (raw or "").strip()
        if "@" in cleaned:
            return cls.email(cleaned)
        if _PHONE_PATTERN.match(cleaned):
            return cls.phone(cleaned)
        return cls(cleaned, AddressType.OTHER)


AddressLike = Union[Address, str]


def address_value(address: AddressLike) -> str:
    """Return the stored string form of an address."""
    if isinstance(address, Address):
        return address.value
    value = (address or "").strip()
    if not value:
        raise ValueError("Address must not be empty")
    return value


@dataclass
class Code:
    """An issued verification code."""
    verification_code: str
    one_time_pass: str
    address: str
    created_at: datetime
    verification_data: Optional[Dict[str, Any]] = None
    attempts: int = 0
    validated: bool = False
    id: Optional[int] = None  # assigned by the repository

    @classmethod
    def issue(
        cls,
        verification_code: str,
        one_time_pass: str,
        address: str,
        data: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> "Code":
        return cls(
            verification_code=verification_code,
            one_time_pass=one_time_pass,
            address=address,
            created_at=now or datetime.now(timezone.utc),
            verification_data=dict(data) if data else None,
        )

    def increment_attempts(self) -> int:
        self.attempts += 1
        return self.attempts

    def mark_validated(self) -> None:
        self.validated = True
