# app/schemas/user.py
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.models.user import UserRole

def normalize_email(value: str) -> str:
    return (value or "").strip().lower()

class UserRegister(BaseModel):
    name: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str = Field(min_length=6, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, v):
        return normalize_email(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Senhas não conferem")
        return self

class UserLogin(BaseModel):
    email: str
    password: str

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3)
    hashed_password: Optional[str] = None
    email: Optional[str] = None

class AdminUserUpdate(BaseModel):
    """Edição do cadastro pela secretaria. Senha em branco mantém a atual."""
    name: str = Field(min_length=3)
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, v):
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("password", mode="before")
    @classmethod
    def _blank_password(cls, v):
        return None if isinstance(v, str) and not v.strip() else v
