"""
Unit Tests for Code Repositories
================================
Both implementations are run against the same contract.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from data_verification import CodeManager, LimitError, VerificationConfig
from data_verification.models import Code
from data_verification.repository import (
    InMemoryCodeRepository,
    SQLAlchemyCodeRepository,
    create_schema,
)

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_sqlite_repository() -> SQLAlchemyCodeRepository:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    return SQLAlchemyCodeRepository(sessionmaker(engine, expire_on_commit=False))


@pytest.fixture(params=["memory", "sqlalchemy"])
def repo(request):
    if request.param == "memory":
        return InMemoryCodeRepository()
    return make_sqlite_repository()


def make_code(key: str, address: str = "a@b.com", at: datetime = T0, **kwargs) -> Code:
    return Code(
        verification_code=key,
        one_time_pass="123456",
        address=address,
        created_at=at,
        **kwargs,
    )


class TestRepositoryContract:
    """Behaviour shared by all repositories."""

    def test_save_assigns_id(self, repo):
        """Saving a new code gives it an identity."""
        code = repo.save(make_code("k1"))

        assert code.id is not None

    def test_round_trip_fields(self, repo):
        """Stored fields come back unchanged."""
        repo.save(make_code("k1", verification_data={"user_id": 5}))

        found = repo.get_one_unvalidated_by_code("k1")

        assert found.one_time_pass == "123456"
        assert found.address == "a@b.com"
        assert found.verification_data == {"user_id": 5}
        assert found.created_at == T0
        assert found.created_at.tzinfo is not None

    def test_update_persists_attempts(self, repo):
        """Saving an existing code updates it in place."""
        code = repo.save(make_code("k1"))
        code.increment_attempts()
        repo.save(code)

        assert repo.get_one_unvalidated_by_code("k1").attempts == 1
        assert repo.get_codes_count_for_address("a@b.com") == 1

    def test_unsaved_changes_not_visible(self, repo):
        """Lookups return the persisted state only."""
        code = repo.save(make_code("k1"))
        code.increment_attempts()

        assert repo.get_one_unvalidated_by_code("k1").attempts == 0

    def test_unsaved_payload_changes_not_visible(self, repo):
        """Editing a fetched or saved payload does not change the store."""
        data = {"user_id": 1}
        repo.save(make_code("k1", verification_data=data))
        data["user_id"] = 2

        found = repo.get_one_unvalidated_by_code("k1")
        found.verification_data["user_id"] = 999

        assert repo.get_one_unvalidated_by_code("k1").verification_data == {"user_id": 1}
        assert repo.get_last_code_for_address("a@b.com").verification_data == {"user_id": 1}

    def test_validated_codes_hidden(self, repo):
        """Unvalidated lookups skip validated codes."""
        code = repo.save(make_code("k1"))
        code.mark_validated()
        repo.save(code)

        assert repo.get_one_unvalidated_by_code("k1") is None

    def test_created_after_is_inclusive(self, repo):
        """A code created exactly at the bound is included."""
        repo.save(make_code("k1"))

        assert repo.get_one_unvalidated_by_code("k1", T0) is not None
        assert repo.get_one_unvalidated_by_code("k1", T0 + timedelta(seconds=1)) is None

    def test_last_code_for_address(self, repo):
        """Should return the most recent code."""
        repo.save(make_code("k1", at=T0))
        repo.save(make_code("k2", at=T0 + timedelta(seconds=30)))
        repo.save(make_code("k3", address="other@b.com", at=T0 + timedelta(seconds=60)))

        last = repo.get_last_code_for_address("a@b.com")

        assert last.verification_code == "k2"
        assert repo.get_last_code_for_address("a@b.com", T0 + timedelta(seconds=31)) is None

    def test_count_for_address(self, repo):
        """Should count only codes in the window for the address."""
        repo.save(make_code("k1", at=T0))
        repo.save(make_code("k2", at=T0 + timedelta(minutes=10)))
        repo.save(make_code("k3", address="other@b.com"))

        assert repo.get_codes_count_for_address("a@b.com") == 2
        assert repo.get_codes_count_for_address("a@b.com", T0 + timedelta(minutes=5)) == 1
        assert repo.get_codes_count_for_address("nobody@b.com") == 0

    def test_delete(self, repo):
        """Deleted codes are gone."""
        code = repo.save(make_code("k1"))

        repo.delete(code)

        assert repo.get_one_unvalidated_by_code("k1") is None

    def test_purge_created_before(self, repo):
        """Housekeeping removes old codes only."""
        repo.save(make_code("old", at=T0 - timedelta(days=2)))
        repo.save(make_code("new", at=T0))

        removed = repo.purge_created_before(T0 - timedelta(days=1))

        assert removed == 1
        assert repo.get_one_unvalidated_by_code("old") is None
        assert repo.get_one_unvalidated_by_code("new") is not None


class TestUniqueness:
    """Verification codes must be unique."""

    def test_in_memory_duplicate(self):
        repo = InMemoryCodeRepository()
        repo.save(make_code("k1"))

        with pytest.raises(ValueError):
            repo.save(make_code("k1"))

    def test_sqlalchemy_duplicate(self):
        repo = make_sqlite_repository()
        repo.save(make_code("k1"))

        with pytest.raises(IntegrityError):
            repo.save(make_code("k1"))


class TestManagerWithSQLAlchemy:
    """End-to-end flow against SQLite."""

    def test_generate_and_verify(self):
        """Full lifecycle should work against a relational store."""
        now = [T0]
        manager = CodeManager(
            VerificationConfig(creation_code_threshold=60, max_attempts=2, limit_per_hour=5),
            make_sqlite_repository(),
            clock=lambda: now[0],
        )

        code = manager.generate("+14155551234", {"flow": "signup"})
        now[0] = T0 + timedelta(seconds=5)

        with pytest.raises(LimitError):
            manager.generate("+14155551234")

        verified = manager.verify(code.verification_code, code.one_time_pass)

        assert verified.validated is True
        assert verified.verification_data == {"flow": "signup"}
