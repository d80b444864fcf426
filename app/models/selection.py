from enum import Enum
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from app.db.base_class import Base
from app.models.enrollment import utcnow

class SelectionStatus(str, Enum):
    RESERVED = "RESERVED"
    WAITLIST = "WAITLIST"

class Selection(Base):
    __tablename__ = "selections"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(ForeignKey("enrollments.id", ondelete="CASCADE"))
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"))
    session_id: Mapped[int] = mapped_column(ForeignKey("course_sessions.id"))
    plan_id: Mapped[Optional[str]] = mapped_column(ForeignKey("payment_plans.id"), nullable=True)
    status: Mapped[SelectionStatus] = mapped_column(default=SelectionStatus.RESERVED)
    waitlist_position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    # entrada na fila da turma atual: critério único de prioridade na alocação.
    # Renovado quando a seleção troca de turma ou a matrícula entra no conjunto ativo.
    queued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    enrollment = relationship("Enrollment", back_populates="selections")
    course = relationship("Course")
    session = relationship("CourseSession")
    plan = relationship("PaymentPlan")

    __table_args__ = (
        UniqueConstraint("enrollment_id", "course_id", name="uq_selection_enrollment_course"),
        CheckConstraint(
            "(status = 'RESERVED' AND waitlist_position IS NULL)"
            " OR (status = 'WAITLIST' AND waitlist_position >= 1)",
            name="placement_consistent",
        ),
        Index("ix_selections_session_queued", "session_id", "queued_at"),
    )
