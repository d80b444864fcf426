# app/db/transaction.py
"""
Unidade de trabalho das operações que mexem em vagas.

`run_in_transaction` executa a função dentro de uma transação, faz commit no
final e, se o banco abortar por conflito de serialização (duas alocações
concorrentes na mesma turma), desfaz tudo e repete a operação inteira.
Esgotadas as tentativas, levanta ConflictRetryable.
"""
import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictRetryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 40001 = serialization_failure, 40P01 = deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}

def is_serialization_failure(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    # SQLite: escritor concorrente segurando o lock do arquivo
    return "database is locked" in str(orig or exc).lower()

def run_in_transaction(db: Session, fn: Callable[[Session], T], *, max_retries: int | None = None) -> T:
    attempts = settings.TX_MAX_RETRIES if max_retries is None else max(max_retries, 1)
    for attempt in range(1, attempts + 1):
        try:
            result = fn(db)
            db.commit()
            return result
        except DBAPIError as exc:
            db.rollback()
            if not is_serialization_failure(exc):
                raise
            logger.warning("conflito de serialização (tentativa %s/%s): %s", attempt, attempts, exc.orig)
        except Exception:
            db.rollback()
            raise
    raise ConflictRetryable(details={"attempts": attempts})
