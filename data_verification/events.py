"""
Generation Events
=================
Event hook letting observers supply the one-time pass.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, List, Optional
import structlog

from .models import MAX_PASS_LENGTH

logger = structlog.get_logger(__name__)

GENERATING_ONE_TIME_PASSWORD = "generating_one_time_password"


@dataclass
class OtpGenerationEvent:
    """Emitted before a one-time pass is generated for an address."""
    name: str
    address: str
    otp: Optional[str] = None
    modified: bool = False

    def set_otp(self, otp: str) -> None:
        """Supply the pass to use instead of a generated one."""
        if not isinstance(otp, str):
            raise TypeError(f"Override OTP must be a string, got {type(otp).__name__}")
        if not otp or len(otp) > MAX_PASS_LENGTH:
            raise ValueError(f"Override OTP must be 1 to {MAX_PASS_LENGTH} characters")
        self.otp = otp
        self.modified = True


Listener = Callable[[OtpGenerationEvent], None]


class EventDispatcher:
    """Synchronous name-keyed event dispatcher."""

    def __init__(self):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def listen(self, name: str, listener: Listener) -> None:
        self._listeners[name].append(listener)

    def remove(self, name: str, listener: Listener) -> None:
        if listener in self._listeners.get(name, []):
            self._listeners[name].remove(listener)

    def dispatch(self, event: OtpGenerationEvent) -> OtpGenerationEvent:
        """
        Run every listener registered for the event's name, in order.

        Listener exceptions propagate to the caller.
        """
        for listener in list(self._listeners.get(event.name, [])):
            listener(event)
        if event.modified:
            logger.debug("OTP supplied by event listener", event_name=event.name)
        return event


def override_listener(otp_override: Callable[[str], Optional[str]]) -> Listener:
    """
    Wrap an ``(address) -> Optional[str]`` strategy as a listener.

    A ``None`` result leaves the event unmodified.
    """
    def listener(event: OtpGenerationEvent) -> None:
        otp = otp_override(event.address)
        if otp is not None:
            event.set_otp(otp)

    return listener
