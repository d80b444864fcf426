# app/core/security_password.py
from __future__ import annotations
from typing import Tuple
from passlib.context import CryptContext

from app.core.config import settings

# argon2 com custo configurável; os testes baixam o custo via ambiente
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=settings.PASSWORD_HASH_TIME_COST,
    argon2__memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
    argon2__parallelism=1,
)

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_and_maybe_upgrade(plain: str, stored_hash: str) -> Tuple[bool, str | None]:
    """
    Confere a senha do login. Se o hash gravado usa parâmetros de custo
    diferentes dos atuais, devolve também o hash novo para regravar.
    """
    if not stored_hash or not pwd_context.identify(stored_hash):
        return False, None
    if not pwd_context.verify(plain, stored_hash):
        return False, None
    if pwd_context.needs_update(stored_hash):
        return True, hash_password(plain)
    return True, None
