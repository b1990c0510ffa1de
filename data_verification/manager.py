"""
Code Manager
============
Issues one-time passes with throttling and verifies them with attempt limits.
"""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
import structlog

from .config import VerificationConfig
from .events import (
    GENERATING_ONE_TIME_PASSWORD,
    EventDispatcher,
    OtpGenerationEvent,
    override_listener,
)
from .exceptions import LimitError, NotFoundError, VerificationError
from .generator import RandomSource, generate_otp, generate_verification_code, hash_address
from .models import AddressLike, Code, address_value
from .repository import CodeRepository

logger = structlog.get_logger(__name__)

HOURLY_WINDOW_SECONDS = 3600


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CodeManager:
    """
    Issues and verifies codes bound to contact addresses.

    The repository is the only shared state; no locking is done here, so
    concurrent calls for one address are limited on a best-effort basis.
    """

    def __init__(
        self,
        config: VerificationConfig,
        repository: CodeRepository,
        events: Optional[EventDispatcher] = None,
        otp_override: Optional[Callable[[str], Optional[str]]] = None,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            config: Limits and generation settings
            repository: Code storage
            events: Dispatcher receiving the generation event
            otp_override: ``(address) -> Optional[str]`` strategy registered
                as a generation listener
            rng: Randomness source for pass generation (secrets by default)
            clock: Returns the current timezone-aware time
        """
        self.config = config.validate()
        self.repository = repository
        self.events = events or EventDispatcher()
        self.rng = rng
        self.clock = clock

        if otp_override is not None:
            self.events.listen(GENERATING_ONE_TIME_PASSWORD, override_listener(otp_override))

    def generate(self, address: AddressLike, data: Optional[Dict[str, Any]] = None) -> Code:
        """
        Issue a new code for an address.

        Args:
            address: Contact address (Address or plain string)
            data: Optional payload returned with the code after verification

        Returns:
            The saved Code

        Raises:
            LimitError: Issued too recently or hourly cap exceeded
            ValueError: Empty address
        """
        address = address_value(address)
        now = self.clock()

        self._check_creation_limit(address, now)

        event = self.events.dispatch(
            OtpGenerationEvent(GENERATING_ONE_TIME_PASSWORD, address)
        )
        if event.modified:
            otp = event.otp
        else:
            otp = generate_otp(
                self.config.allowed_symbols,
                self.config.pass_length,
                rng=self.rng,
            )

        code = Code.issue(
            verification_code=generate_verification_code(),
            one_time_pass=otp,
            address=address,
            data=data,
            now=now,
        )
        code = self.repository.save(code)

        logger.info(
            "Verification code issued",
            address_hash=hash_address(address),
            verification_code=code.verification_code,
            overridden=event.modified,
        )
        return code

    def verify(self, verification_code: str, supplied_pass: str) -> Code:
        """
        Check a one-time pass against an issued code.

        A wrong pass is counted and saved before VerificationError is
        raised. The attempt cap is checked against attempts made before
        this call, so a correct pass after the cap is reached still fails.

        Returns:
            The validated Code

        Raises:
            NotFoundError: No unexpired, unvalidated code for the key
            VerificationError: Wrong pass
            LimitError: Attempt cap already reached
        """
        created_after = self.clock() - timedelta(
            seconds=self.config.password_validation_period
        )
        code = self.repository.get_one_unvalidated_by_code(verification_code, created_after)

        if code is None:
            logger.warning("Verification code not found", verification_code=verification_code)
            raise NotFoundError(
                "No matching unexpired, unvalidated code",
                verification_code=verification_code,
            )

        if self.config.reject_exhausted_early and self._attempts_exhausted(code):
            raise self._attempts_error(code)

        if not hmac.compare_digest(code.one_time_pass.encode(), supplied_pass.encode()):
            code.increment_attempts()
            self.repository.save(code)

            logger.warning(
                "Incorrect one-time pass",
                verification_code=verification_code,
                attempts=code.attempts,
            )
            raise VerificationError(
                "Incorrect code",
                attempts=code.attempts,
                address=code.address,
                verification_code=verification_code,
            )

        if self._attempts_exhausted(code):
            raise self._attempts_error(code)

        code.mark_validated()
        code = self.repository.save(code)

        logger.info("Verification code validated", verification_code=verification_code)
        return code

    def _check_creation_limit(self, address: str, now: datetime) -> None:
        created_after = now - timedelta(seconds=self.config.creation_code_threshold)

        if self.repository.get_last_code_for_address(address, created_after) is not None:
            logger.warning("Code requested too frequently", address_hash=hash_address(address))
            raise LimitError(
                "Issuance too frequent",
                reason=LimitError.TOO_FREQUENT,
                address=address,
            )

        created_after = now - timedelta(seconds=HOURLY_WINDOW_SECONDS)
        issued = self.repository.get_codes_count_for_address(address, created_after) or 0

        if issued > 0 and self.config.limit_per_hour < issued:
            logger.warning(
                "Hourly code limit exceeded",
                address_hash=hash_address(address),
                issued=issued,
                limit=self.config.limit_per_hour,
            )
            raise LimitError(
                "Hourly limit exceeded",
                reason=LimitError.HOURLY_LIMIT,
                address=address,
            )

    def _attempts_exhausted(self, code: Code) -> bool:
        return self.config.max_attempts <= code.attempts

    def _attempts_error(self, code: Code) -> LimitError:
        logger.warning(
            "Verification attempts exhausted",
            verification_code=code.verification_code,
            attempts=code.attempts,
        )
        return LimitError(
            "Attempt limit exceeded",
            reason=LimitError.ATTEMPTS_EXHAUSTED,
            address=code.address,
            verification_code=code.verification_code,
        )
