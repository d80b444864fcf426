# app/services/read_model.py
"""
Vagas e lista de espera por turma, sempre derivadas do livro de seleções.

Nada aqui é gravado: os números saem de uma contagem agrupada sobre as
seleções de matrículas ativas, então não existe contador que possa divergir
do que o motor de alocação persistiu.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFound
from app.models.course import Course, CourseSession, PaymentPlan
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment
from app.models.selection import Selection, SelectionStatus
from app.models.user import User


@dataclass(frozen=True)
class SessionStats:
    session_id: int
    capacity: int
    reserved: int
    waitlist: int

    @property
    def available(self) -> int:
        return max(self.capacity - self.reserved, 0)


@dataclass(frozen=True)
class WaitlistEntry:
    selection_id: int
    enrollment_id: int
    student_name: str
    student_email: str
    position: int


def session_stats(db: Session, session_ids: Optional[Iterable[int]] = None) -> Dict[int, SessionStats]:
    sessions_stmt = select(CourseSession.id, CourseSession.capacity)
    counts_stmt = (
        select(Selection.session_id, Selection.status, func.count())
        .join(Enrollment, Enrollment.id == Selection.enrollment_id)
        .where(Enrollment.status.in_(list(ACTIVE_ENROLLMENT_STATUSES)))
        .group_by(Selection.session_id, Selection.status)
    )
    if session_ids is not None:
        ids = list(session_ids)
        sessions_stmt = sessions_stmt.where(CourseSession.id.in_(ids))
        counts_stmt = counts_stmt.where(Selection.session_id.in_(ids))

    counters: Dict[int, Dict[SelectionStatus, int]] = {}
    for session_id, status, total in db.execute(counts_stmt).all():
        counters.setdefault(session_id, {})[status] = total

    stats = {}
    for session_id, capacity in db.execute(sessions_stmt).all():
        entry = counters.get(session_id, {})
        stats[session_id] = SessionStats(
            session_id=session_id,
            capacity=capacity,
            reserved=entry.get(SelectionStatus.RESERVED, 0),
            waitlist=entry.get(SelectionStatus.WAITLIST, 0),
        )
    return stats


def get_session_stats(db: Session, session_id: int) -> SessionStats:
    stats = session_stats(db, [session_id]).get(session_id)
    if stats is None:
        raise NotFound("Turma não encontrada.", details={"session_id": session_id})
    return stats


def list_courses(db: Session, only_active: bool = True) -> List[Course]:
    stmt = (
        select(Course)
        .options(selectinload(Course.sessions), selectinload(Course.plans))
        .order_by(Course.title.asc())
    )
    if only_active:
        stmt = stmt.where(Course.is_active.is_(True))
    return list(db.execute(stmt).scalars().all())


def active_plans(course: Course) -> List[PaymentPlan]:
    return [plan for plan in course.plans if plan.is_active]


def session_waitlist(db: Session, session_id: int) -> List[WaitlistEntry]:
    if db.get(CourseSession, session_id) is None:
        raise NotFound("Turma não encontrada.", details={"session_id": session_id})
    rows = db.execute(
        select(Selection.id, Selection.enrollment_id, User.name, User.email, Selection.waitlist_position)
        .join(Enrollment, Enrollment.id == Selection.enrollment_id)
        .join(User, User.id == Enrollment.user_id)
        .where(
            Selection.session_id == session_id,
            Selection.status == SelectionStatus.WAITLIST,
            Enrollment.status.in_(list(ACTIVE_ENROLLMENT_STATUSES)),
        )
        .order_by(Selection.waitlist_position.asc())
    ).all()
    return [
        WaitlistEntry(
            selection_id=sel_id, enrollment_id=enr_id, student_name=name,
            student_email=email, position=position,
        )
        for sel_id, enr_id, name, email, position in rows
    ]
