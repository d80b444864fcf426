# app/core/rbac.py
from fastapi import Depends

from app.api.deps import get_current_user
from app.core.errors import PermissionDenied
from app.models.user import User, UserRole

def require_roles(*roles: UserRole):
    allowed = set(roles)
    def dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDenied("Acesso negado para este perfil.", details={"role": user.role.value})
        return user
    return dep

require_admin = require_roles(UserRole.ADMIN)
require_student = require_roles(UserRole.STUDENT, UserRole.ADMIN)
