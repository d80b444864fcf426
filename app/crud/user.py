from sqlalchemy.orm import Session
from sqlalchemy import select
from app.core.errors import InvalidRequest
from app.crud.base import CRUDBase
from app.models.user import User, UserRole
from app.schemas.user import AdminUserUpdate, UserRegister, UserUpdate, normalize_email
from app.services.audit import record_audit

from app.core.security_password import hash_password

class CRUDUser(CRUDBase[User, UserRegister, UserUpdate]):
    def create(self, db: Session, obj_in: UserRegister, extra=None) -> User:
        data = obj_in.model_dump(exclude={"confirm_password"})
        data["name"] = data["name"].strip()
        data["hashed_password"] = hash_password(data.pop("password"))
        data.setdefault("role", UserRole.STUDENT)
        if extra: data.update(extra)
        user = User(**data)
        db.add(user); db.commit(); db.refresh(user)
        return user

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()

    def update_account(self, db: Session, user: User, obj_in: AdminUserUpdate, actor_id: int | None = None) -> User:
        owner = self.get_by_email(db, obj_in.email)
        if owner is not None and owner.id != user.id:
            raise InvalidRequest("E-mail já está sendo usado.", details={"email": obj_in.email})

        data = {"name": obj_in.name.strip(), "email": obj_in.email}
        changed = [f for f, v in data.items() if getattr(user, f) != v]
        if obj_in.password:
            data["hashed_password"] = hash_password(obj_in.password)
            changed.append("password")
        # o diff guarda só os nomes dos campos, nunca a senha
        record_audit(db, user_id=actor_id, entity="user", entity_id=user.id, action="update_account", diff={"fields": changed})
        return self.update(db, user, data)

user_crud = CRUDUser(User)
