"""
Code Repositories
=================
Repository interface and its in-memory and SQLAlchemy implementations.
"""

from .base import CodeRepository
from .in_memory import InMemoryCodeRepository
from .sql_repository import Base, CodeRecord, SQLAlchemyCodeRepository, create_schema

__all__ = [
    # Interface
    "CodeRepository",
    # Implementations
    "InMemoryCodeRepository",
    "SQLAlchemyCodeRepository",
    # Schema
    "Base",
    "CodeRecord",
    "create_schema",
]
