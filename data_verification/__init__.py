"""
Data Verification Library
=========================
One-time-pass issuance and verification for contact addresses.
"""

__version__ = "0.1.0"

# Configuration
from data_verification.config import VerificationConfig

# Models
from data_verification.models import Address, AddressType, Code, normalize_phone

# Errors
from data_verification.exceptions import (
    DataVerificationError,
    LimitError,
    NotFoundError,
    VerificationError,
)

# Generation
from data_verification.generator import generate_otp, generate_verification_code

# Events
from data_verification.events import (
    GENERATING_ONE_TIME_PASSWORD,
    EventDispatcher,
    OtpGenerationEvent,
)

# Repositories
from data_verification.repository import (
    CodeRepository,
    InMemoryCodeRepository,
    SQLAlchemyCodeRepository,
    create_schema,
)

# Manager
from data_verification.manager import CodeManager

# Logging
from data_verification.log_setup import setup_logging

__all__ = [
    # Configuration
    "VerificationConfig",
    # Models
    "Address",
    "AddressType",
    "Code",
    "normalize_phone",
    # Errors
    "DataVerificationError",
    "LimitError",
    "NotFoundError",
    "VerificationError",
    # Generation
    "generate_otp",
    "generate_verification_code",
    # Events
    "GENERATING_ONE_TIME_PASSWORD",
    "EventDispatcher",
    "OtpGenerationEvent",
    # Repositories
    "CodeRepository",
    "InMemoryCodeRepository",
    "SQLAlchemyCodeRepository",
    "create_schema",
    # Manager
    "CodeManager",
    # Logging
    "setup_logging",
]
