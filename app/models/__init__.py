# app/models/__init__.py
# Carrega módulos para registrar tabelas no metadata:
from app.models.user import User, UserRole
from app.models.course import Course, CourseModality, CourseSession, PaymentPlan
from app.models.enrollment import (
    ACTIVE_ENROLLMENT_STATUSES,
    Enrollment,
    EnrollmentStatus,
    Level,
    Objective,
    PaymentMethod,
    PaymentStatus,
)
from app.models.selection import Selection, SelectionStatus
from app.models.token_counter import TokenCounter
from app.models.audit import AuditLog

__all__ = [
    "ACTIVE_ENROLLMENT_STATUSES",
    "AuditLog",
    "Course",
    "CourseModality",
    "CourseSession",
    "Enrollment",
    "EnrollmentStatus",
    "Level",
    "Objective",
    "PaymentMethod",
    "PaymentPlan",
    "PaymentStatus",
    "Selection",
    "SelectionStatus",
    "TokenCounter",
    "User",
    "UserRole",
]
