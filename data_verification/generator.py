"""
Code Generation
===============
One-time pass and verification code generation.
"""

import hashlib
import secrets
from typing import Optional, Protocol, Sequence


class RandomSource(Protocol):
    def choice(self, seq: Sequence[str]) -> str: ...


def generate_otp(
    alphabet: Sequence[str],
    length: int,
    rng: Optional[RandomSource] = None,
) -> str:
    """
    Generate a one-time pass from an alphabet.
    
    Each position is drawn independently and uniformly, with replacement.
    
    Args:
        alphabet: Ordered, non-empty sequence of symbols
        length: Number of symbols
        rng: Object with a ``choice`` method (e.g. a seeded
            ``random.Random``); defaults to the ``secrets`` module
        
    Returns:
        OTP string
    """
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    if length < 1:
        raise ValueError("length must be a positive integer")
    
    source = rng if rng is not None else secrets
    symbols = list(alphabet)
    return ''.join(source.choice(symbols) for _ in range(length))


def generate_verification_code(nbytes: int = 32) -> str:
    """Generate an unguessable lookup key for an issued code."""
    return secrets.token_urlsafe(nbytes)


def hash_address(address: str, pepper: str = "") -> str:
    """
    Hash a contact address for logging.
    
    Args:
        address: Normalized phone or email
        pepper: Optional secret pepper
        
    Returns:
        SHA-256 hash
    """
    return hashlib.sha256(f"{pepper}:{address}".encode()).hexdigest()
