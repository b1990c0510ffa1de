"""
In-Memory Code Repository
=========================
Dict-backed repository for development and testing.
"""

import copy
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from ..models import Code
from .base import CodeRepository


class InMemoryCodeRepository(CodeRepository):
    """
    Simple in-memory code repository.
    
    For development and testing only.
    Use SQLAlchemyCodeRepository in production.
    
    Entities are copied on the way in and out, so changes are only
    visible to later lookups once saved.
    """
    
    def __init__(self):
        self._codes: Dict[int, Code] = {}
        self._next_id = 1
        self._lock = threading.Lock()
    
    def save(self, code: Code) -> Code:
        with self._lock:
            for stored in self._codes.values():
                if (
                    stored.verification_code == code.verification_code
                    and stored.id != code.id
                ):
                    raise ValueError(
                        f"Duplicate verification code: {code.verification_code}"
                    )
            
            if code.id is None:
                code.id = self._next_id
                self._next_id += 1
            
            self._codes[code.id] = _copy(code)
            return code
    
    def delete(self, code: Code) -> None:
        with self._lock:
            self._codes.pop(code.id, None)
    
    def get_one_unvalidated_by_code(
        self,
        verification_code: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        matches = [
            code for code in self._snapshot()
            if code.verification_code == verification_code
            and not code.validated
            and _within(code, created_after)
        ]
        return _copy(matches[0]) if matches else None
    
    def get_last_code_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        matches = self._for_address(address, created_after)
        if not matches:
            return None
        latest = max(matches, key=lambda code: (code.created_at, code.id))
        return _copy(latest)
    
    def get_codes_count_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[int]:
        return len(self._for_address(address, created_after))
    
    def purge_created_before(self, created_before: datetime) -> int:
        with self._lock:
            expired = [
                code_id for code_id, code in self._codes.items()
                if code.created_at < created_before
            ]
            for code_id in expired:
                del self._codes[code_id]
            return len(expired)
    
    def __len__(self) -> int:
        return len(self._codes)
    
    def _snapshot(self) -> List[Code]:
        with self._lock:
            return list(self._codes.values())
    
    def _for_address(self, address: str, created_after: Optional[datetime]) -> List[Code]:
        return [
            code for code in self._snapshot()
            if code.address == address and _within(code, created_after)
        ]


def _within(code: Code, created_after: Optional[datetime]) -> bool:
    return created_after is None or code.created_at >= created_after


def _copy(code: Code) -> Code:
    return replace(code, verification_data=copy.deepcopy(code.verification_data))
