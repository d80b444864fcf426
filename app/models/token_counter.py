from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer
from app.db.base_class import Base

class TokenCounter(Base):
    """Sequência global dos tokens de confirmação presencial (linha única, id=1)."""
    __tablename__ = "token_counters"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_number: Mapped[int] = mapped_column(Integer, default=0)
