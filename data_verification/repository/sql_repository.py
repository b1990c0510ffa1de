"""
SQLAlchemy Code Repository
==========================
Relational persistence for issued codes.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
import structlog

from ..models import MAX_PASS_LENGTH, Code
from .base import CodeRepository

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


class CodeRecord(Base):
    __tablename__ = "verification_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    verification_code: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    one_time_pass: Mapped[str] = mapped_column(String(MAX_PASS_LENGTH))
    address: Mapped[str] = mapped_column(String(255), index=True)
    verification_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    validated: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    # Naive UTC, portable across backends
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True)


def create_schema(engine: Engine) -> None:
    """Create the verification_codes table if missing."""
    Base.metadata.create_all(engine)
    logger.info("Verification schema created", table=CodeRecord.__tablename__)


def _to_db(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _to_entity(record: CodeRecord) -> Code:
    return Code(
        id=record.id,
        verification_code=record.verification_code,
        one_time_pass=record.one_time_pass,
        address=record.address,
        verification_data=record.verification_data,
        attempts=record.attempts,
        validated=record.validated,
        created_at=_from_db(record.created_at),
    )


class SQLAlchemyCodeRepository(CodeRepository):
    """
    Code repository over a SQLAlchemy session factory.
    
    Each call runs in its own session and commits on success.
    
    Usage:
        engine = create_engine("postgresql+psycopg://...")
        create_schema(engine)
        repo = SQLAlchemyCodeRepository(sessionmaker(engine, expire_on_commit=False))
    """
    
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
    
    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
    
    def save(self, code: Code) -> Code:
        with self._session() as session:
            record = session.get(CodeRecord, code.id) if code.id is not None else None
            if record is None:
                record = CodeRecord(
                    verification_code=code.verification_code,
                    one_time_pass=code.one_time_pass,
                    address=code.address,
                    verification_data=code.verification_data,
                    created_at=_to_db(code.created_at),
                )
                session.add(record)
            record.attempts = code.attempts
            record.validated = code.validated
            session.flush()
            code.id = record.id
        return code
    
    def delete(self, code: Code) -> None:
        with self._session() as session:
            session.execute(
                delete(CodeRecord).where(
                    CodeRecord.verification_code == code.verification_code
                )
            )
    
    def get_one_unvalidated_by_code(
        self,
        verification_code: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        stmt = select(CodeRecord).where(
            CodeRecord.verification_code == verification_code,
            CodeRecord.validated.is_(False),
        )
        if created_after is not None:
            stmt = stmt.where(CodeRecord.created_at >= _to_db(created_after))
        
        with self._session() as session:
            record = session.scalars(stmt.limit(1)).first()
            return _to_entity(record) if record is not None else None
    
    def get_last_code_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Code]:
        stmt = select(CodeRecord).where(CodeRecord.address == address)
        if created_after is not None:
            stmt = stmt.where(CodeRecord.created_at >= _to_db(created_after))
        stmt = stmt.order_by(CodeRecord.created_at.desc(), CodeRecord.id.desc()).limit(1)
        
        with self._session() as session:
            record = session.scalars(stmt).first()
            return _to_entity(record) if record is not None else None
    
    def get_codes_count_for_address(
        self,
        address: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[int]:
        stmt = select(func.count(CodeRecord.id)).where(CodeRecord.address == address)
        if created_after is not None:
            stmt = stmt.where(CodeRecord.created_at >= _to_db(created_after))
        
        with self._session() as session:
            return session.execute(stmt).scalar_one()
    
    def purge_created_before(self, created_before: datetime) -> int:
        with self._session() as session:
            result = session.execute(
                delete(CodeRecord).where(CodeRecord.created_at < _to_db(created_before))
            )
            removed = result.rowcount or 0
        
        logger.info("Expired verification codes purged", removed=removed)
        return removed
