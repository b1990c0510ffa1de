"""
Code Repository Interface
=========================
Persistence contract consumed by CodeManager.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..models import Code


class CodeRepository(ABC):
    """
    Stores and looks up issued codes.

    ``created_after`` bounds are inclusive. Implementations must enforce
    uniqueness of ``verification_code``.
    """

    @abstractmethod
    def save(self, code: Code) -> Code:
        """Insert or update a code, returning the persisted entity."""

    @abstractmethod
    def delete(self, code: Code) -> None:
        """Remove a code."""

    @abstractmethod
    def get_one_unvalidated_by_code(
        self,
        verification_code: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        """Return the unvalidated code with this key created at/after the bound."""

    @abstractmethod
    def get_last_code_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        """Return the most recent code for an address created at/after the bound."""

    @abstractmethod
    def get_codes_count_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[int]:
        """Count codes for an address created at/after the bound."""

    @abstractmethod
    def purge_created_before(self, created_before: datetime) -> int:
        """Delete codes created before a point in time; returns the number removed."""
