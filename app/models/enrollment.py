from enum import Enum
from decimal import Decimal
from datetime import date, datetime, timezone
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from app.db.base_class import Base

class EnrollmentStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    WAITING_PAYMENT = "WAITING_PAYMENT"
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    REJECTED = "REJECTED"

# Só matrículas nestes status ocupam vaga nas turmas
ACTIVE_ENROLLMENT_STATUSES = frozenset({
    EnrollmentStatus.SUBMITTED,
    EnrollmentStatus.UNDER_REVIEW,
    EnrollmentStatus.WAITING_PAYMENT,
    EnrollmentStatus.CONFIRMED,
})

# Status que encerram a pré-matrícula corrente do usuário
CLOSED_ENROLLMENT_STATUSES = frozenset({EnrollmentStatus.CONFIRMED, EnrollmentStatus.REJECTED})

class PaymentMethod(str, Enum):
    PIX = "PIX"
    CARD = "CARD"
    BOLETO = "BOLETO"
    PRESENTIAL = "PRESENTIAL"

class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"

class Objective(str, Enum):
    ENEM = "ENEM"
    UFG_VESTIBULAR = "UFG_VESTIBULAR"
    REFORCO = "REFORCO"
    CONCURSOS = "CONCURSOS"

class Level(str, Enum):
    INICIANTE = "INICIANTE"
    INTERMEDIARIO = "INTERMEDIARIO"
    AVANCADO = "AVANCADO"

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Enrollment(Base):
    __tablename__ = "enrollments"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    status: Mapped[EnrollmentStatus] = mapped_column(default=EnrollmentStatus.DRAFT)

    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(default=PaymentStatus.PENDING)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    registration_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    registration_fee_discount: Mapped[bool] = mapped_column(Boolean, default=False)
    has_waitlist: Mapped[bool] = mapped_column(Boolean, default=False)
    promo_bonus_granted: Mapped[bool] = mapped_column(Boolean, default=False)

    # token da confirmação presencial (atribuído uma única vez)
    token: Mapped[Optional[str]] = mapped_column(String(12), unique=True, nullable=True)
    token_sequence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    confirmation_day: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    confirmation_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # dados básicos
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    school: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    grade: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    objective: Mapped[Optional[Objective]] = mapped_column(nullable=True)
    level: Mapped[Optional[Level]] = mapped_column(nullable=True)
    has_enem: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    enem_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    study_goal: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="enrollments")
    selections = relationship(
        "Selection",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="Selection.created_at",
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ENROLLMENT_STATUSES
