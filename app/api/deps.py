from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import Unauthenticated
from app.core.tokens import decode_access
from app.crud.user import user_crud
from app.db.session import get_db
from app.models.user import User

# ----------------------------------------------------------------------
# Lê o Bearer do header Authorization (sem usar OAuth2PasswordBearer)
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise Unauthenticated("Cabeçalho Authorization ausente.")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Cabeçalho Authorization inválido.")
    return parts[1]

# ----------------------------------------------------------------------
# Usuário atual a partir do access token (sub = id do usuário)
# ----------------------------------------------------------------------
def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_access(token)
    if not payload:
        raise Unauthenticated("Token inválido ou expirado.")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated("Token inválido.")

    user = user_crud.get(db, user_id)
    if not user:
        raise Unauthenticated("Usuário não encontrado.")
    return user
