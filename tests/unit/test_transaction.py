"""run_in_transaction: commit, rollback e novas tentativas em conflito de serialização."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.config import settings
from app.core.errors import ConflictRetryable, NotFound
from app.db.transaction import is_serialization_failure, run_in_transaction


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("could not serialize access")
        self.sqlstate = sqlstate


def _locked():
    return OperationalError("UPDATE selections", {}, Exception("database is locked"))


def test_commits_and_returns_result():
    db = MagicMock()

    assert run_in_transaction(db, lambda s: 42) == 42
    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_retries_after_serialization_failure():
    db = MagicMock()
    calls = []

    def op(session):
        calls.append(1)
        if len(calls) < 3:
            raise _locked()
        return "ok"

    assert run_in_transaction(db, op, max_retries=5) == "ok"
    assert len(calls) == 3
    assert db.rollback.call_count == 2


def test_gives_up_with_conflict_after_max_retries():
    db = MagicMock()

    def op(session):
        raise _locked()

    with pytest.raises(ConflictRetryable) as exc:
        run_in_transaction(db, op, max_retries=2)
    assert exc.value.details == {"attempts": 2}
    assert db.rollback.call_count == 2
    db.commit.assert_not_called()


def test_domain_error_rolls_back_without_retry():
    db = MagicMock()
    calls = []

    def op(session):
        calls.append(1)
        raise NotFound()

    with pytest.raises(NotFound):
        run_in_transaction(db, op, max_retries=5)
    assert len(calls) == 1
    db.rollback.assert_called_once()


def test_other_database_errors_are_not_retried():
    db = MagicMock()

    def op(session):
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        run_in_transaction(db, op, max_retries=5)
    db.rollback.assert_called_once()


@pytest.mark.parametrize("sqlstate, expected", [("40001", True), ("40P01", True), ("23505", False)])
def test_postgres_sqlstates(sqlstate, expected):
    exc = OperationalError("SELECT 1", {}, _PgError(sqlstate))

    assert is_serialization_failure(exc) is expected


def test_zero_retries_still_runs_once():
    db = MagicMock()
    calls = []

    def op(session):
        calls.append(1)
        raise _locked()

    with pytest.raises(ConflictRetryable) as exc:
        run_in_transaction(db, op, max_retries=0)
    assert len(calls) == 1
    assert exc.value.details == {"attempts": 1}


def test_default_retries_come_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "TX_MAX_RETRIES", 3)
    db = MagicMock()
    calls = []

    def op(session):
        calls.append(1)
        raise _locked()

    with pytest.raises(ConflictRetryable) as exc:
        run_in_transaction(db, op)
    assert len(calls) == 3
    assert exc.value.details == {"attempts": 3}
