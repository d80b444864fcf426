from enum import Enum
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from app.db.base_class import Base

class CourseModality(str, Enum):
    REDACAO = "REDACAO"
    EXATAS = "EXATAS"
    MATEMATICA = "MATEMATICA"
    GRAMATICA = "GRAMATICA"

class Course(Base):
    __tablename__ = "courses"
    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    title: Mapped[str] = mapped_column(String(160))
    modality: Mapped[CourseModality]
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    materials: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    audience: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # bônus promocional: limite opcional + contador de concedidos
    bonus_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bonus_awarded: Mapped[int] = mapped_column(Integer, default=0)

    sessions = relationship("CourseSession", back_populates="course", order_by="CourseSession.start_time")
    plans = relationship("PaymentPlan", back_populates="course", order_by="PaymentPlan.months")

    __table_args__ = (
        CheckConstraint("bonus_awarded >= 0", name="bonus_awarded_non_negative"),
        CheckConstraint("bonus_limit IS NULL OR bonus_awarded <= bonus_limit", name="bonus_within_limit"),
    )

class CourseSession(Base):
    __tablename__ = "course_sessions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), index=True)
    code: Mapped[str] = mapped_column(String(20), unique=True)
    weekday: Mapped[str] = mapped_column(String(40))
    start_time: Mapped[str] = mapped_column(String(5))
    end_time: Mapped[str] = mapped_column(String(5))
    level: Mapped[str] = mapped_column(String(60))
    capacity: Mapped[int] = mapped_column(Integer)

    course = relationship("Course", back_populates="sessions")

    __table_args__ = (CheckConstraint("capacity >= 0", name="capacity_non_negative"),)

class PaymentPlan(Base):
    __tablename__ = "payment_plans"
    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), index=True)
    label: Mapped[str] = mapped_column(String(80))
    months: Mapped[int] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount_pct: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    course = relationship("Course", back_populates="plans")
