# app/db/base.py
# Base + todos os models registrados no metadata (usado pelo Alembic e pelos testes)
from app.db.base_class import Base  # noqa: F401
import app.models  # noqa: F401
