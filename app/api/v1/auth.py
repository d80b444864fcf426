# app/api/v1/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.errors import InvalidRequest, Unauthenticated
from app.core.security_password import verify_and_maybe_upgrade
from app.crud.user import user_crud
from app.core.tokens import create_access_token
from app.db.session import get_db
from app.models.user import User
from app.schemas.token import Token
from app.schemas.user import UserLogin, UserOut, UserRegister, normalize_email

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------- helpers ----------
def _issue_token(user: User) -> dict:
    return {
        "access_token": create_access_token(user_id=user.id, role=user.role.value),
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }

def _authenticate(db: Session, email: str, password: str) -> User:
    email = normalize_email(email)
    if not email or not password:
        raise InvalidRequest("E-mail e senha são obrigatórios.")

    user = user_crud.get_by_email(db, email)
    if not user:
        raise Unauthenticated("Credenciais inválidas.")

    ok, new_hash = verify_and_maybe_upgrade(password, user.hashed_password)
    if not ok:
        raise Unauthenticated("Credenciais inválidas.")
    if new_hash:
        user_crud.update(db, user, {"hashed_password": new_hash})
    return user

# ---------- endpoints ----------
@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(body: UserRegister, db: Session = Depends(get_db)):
    if user_crud.get_by_email(db, body.email):
        raise InvalidRequest("E-mail já cadastrado.", details={"email": body.email})

    user = user_crud.create(db, body)
    logger.info("usuário %s registrado", user.id)
    return _issue_token(user)

@router.post("/login", response_model=Token)
def login(body: UserLogin, db: Session = Depends(get_db)):
    return _issue_token(_authenticate(db, body.email, body.password))

@router.post("/token", response_model=Token)
def login_oauth2_form(
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    return _issue_token(_authenticate(db, form.username, form.password or ""))
