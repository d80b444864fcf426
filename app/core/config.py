# app/core/config.py
import os
from datetime import date
from decimal import Decimal
from typing import ClassVar
from pydantic import BaseModel, Field

def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'pre_enrollment.db')}")

def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}

class Settings(BaseModel):
    # Constante (não vira campo Pydantic)
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    # Campos de configuração
    ENVIRONMENT: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "local"))
    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    DATABASE_URL: str = Field(default_factory=_default_database_url)
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "true"))
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")))
    TIMEZONE: str = Field(default_factory=lambda: os.getenv("TIMEZONE", "America/Sao_Paulo"))

    # custo do argon2 (senhas)
    PASSWORD_HASH_TIME_COST: int = Field(default_factory=lambda: int(os.getenv("PASSWORD_HASH_TIME_COST", "2")))
    PASSWORD_HASH_MEMORY_COST: int = Field(default_factory=lambda: int(os.getenv("PASSWORD_HASH_MEMORY_COST", "19456")))

    # Transações de alocação: tentativas em caso de conflito de serialização
    TX_MAX_RETRIES: int = Field(default_factory=lambda: int(os.getenv("TX_MAX_RETRIES", "5")))

    # Taxa de matrícula
    REGISTRATION_FEE: Decimal = Field(default_factory=lambda: Decimal(os.getenv("REGISTRATION_FEE", "150.00")))
    REGISTRATION_FEE_DISCOUNT_PERCENTAGE: Decimal = Field(
        default_factory=lambda: Decimal(os.getenv("REGISTRATION_FEE_DISCOUNT_PERCENTAGE", "0.5"))
    )
    REGISTRATION_DISCOUNT_DEADLINE_DAY: int = Field(
        default_factory=lambda: int(os.getenv("REGISTRATION_DISCOUNT_DEADLINE_DAY", "10"))
    )

    # Confirmação presencial
    MIN_CONFIRMATION_DATE: date = Field(
        default_factory=lambda: date.fromisoformat(os.getenv("MIN_CONFIRMATION_DATE", "2026-01-05"))
    )
    CONFIRMATION_MAX_DAYS_AHEAD: int = Field(default_factory=lambda: int(os.getenv("CONFIRMATION_MAX_DAYS_AHEAD", "365")))

    # Bônus promocional (modalidade elegível)
    BONUS_MODALITY: str = Field(default_factory=lambda: os.getenv("BONUS_MODALITY", "REDACAO"))

settings = Settings()
