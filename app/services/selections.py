# app/services/selections.py
"""
Operações que alteram o livro de seleções ou a capacidade das turmas.

Cada operação roda inteira dentro de `run_in_transaction`: altera as
seleções/turma, realoca as turmas afetadas, atualiza os agregados das
matrículas envolvidas (has_waitlist, total) e só então faz commit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import IncompatiblePlan, InvalidCapacity, InvalidRequest, NotFound, PermissionDenied
from app.db.transaction import run_in_transaction
from app.models.course import CourseSession, PaymentPlan
from app.models.enrollment import Enrollment, utcnow
from app.models.selection import Selection, SelectionStatus
from app.services.allocation import (
    AllocationResult,
    Placement,
    Waitlisted,
    apply_placement,
    eligible_counts,
    lock_session,
    placement_of,
    provisional_placement,
    recompute_session,
    recompute_sessions,
)
from app.services.audit import record_audit
from app.services.pricing import FeePolicy, compute_total, local_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionOutcome:
    selection_id: int
    session_id: int
    placement: Placement

    @property
    def status(self) -> SelectionStatus:
        if isinstance(self.placement, Waitlisted):
            return SelectionStatus.WAITLIST
        return SelectionStatus.RESERVED

    @property
    def waitlist_position(self) -> Optional[int]:
        if isinstance(self.placement, Waitlisted):
            return self.placement.position
        return None


# ---------------------------------------------------------------------------
# Agregados da matrícula
# ---------------------------------------------------------------------------

def refresh_enrollments(db: Session, enrollment_ids: Iterable[int], today: Optional[date] = None) -> None:
    """Recalcula has_waitlist e os totais das matrículas a partir do livro de seleções."""
    db.flush()
    today = today or local_today()
    policy = FeePolicy.from_settings()
    for enrollment_id in sorted(set(enrollment_ids)):
        enrollment = db.get(Enrollment, enrollment_id)
        if enrollment is None:
            continue
        rows = db.execute(
            select(Selection.status, PaymentPlan.price)
            .outerjoin(PaymentPlan, PaymentPlan.id == Selection.plan_id)
            .where(Selection.enrollment_id == enrollment_id)
        ).all()
        total, fee, discount = compute_total((price for _, price in rows), policy, today)
        enrollment.has_waitlist = any(status == SelectionStatus.WAITLIST for status, _ in rows)
        enrollment.total_amount = total
        enrollment.registration_fee = fee
        enrollment.registration_fee_discount = discount
    db.flush()


def _touched(results: Iterable[AllocationResult], *extra: int) -> Set[int]:
    ids: Set[int] = set(extra)
    for result in results:
        ids |= result.touched_enrollment_ids
    return ids


def _settle_placement(db: Session, selection: Selection, enrollment: Enrollment) -> None:
    # matrícula fora do conjunto ativo: alocação prévia, fora da fila real
    if not enrollment.is_active:
        apply_placement(selection, provisional_placement(db, selection.session_id))


# ---------------------------------------------------------------------------
# Aluno
# ---------------------------------------------------------------------------

def select_session(
    db: Session,
    *,
    enrollment_id: int,
    course_id: str,
    session_id: int,
    today: Optional[date] = None,
) -> SelectionOutcome:
    def _op(db: Session) -> SelectionOutcome:
        session = db.get(CourseSession, session_id)
        if session is None or session.course_id != course_id:
            raise NotFound("Turma não encontrada.", details={"course_id": course_id, "session_id": session_id})
        enrollment = db.get(Enrollment, enrollment_id)
        if enrollment is None:
            raise NotFound("Pré-matrícula não encontrada.", details={"enrollment_id": enrollment_id})

        selection = db.execute(
            select(Selection).where(Selection.enrollment_id == enrollment.id, Selection.course_id == course_id)
        ).scalar_one_or_none()

        affected: List[int] = [session.id]
        if selection is not None:
            if selection.session_id != session.id:
                affected.append(selection.session_id)
                # turma nova, lugar novo: entra no fim da fila
                selection.queued_at = utcnow()
            # mesma linha: troca a turma e descarta o plano escolhido antes
            selection.session_id = session.id
            selection.plan_id = None
        else:
            selection = Selection(
                enrollment_id=enrollment.id,
                course_id=course_id,
                session_id=session.id,
                status=SelectionStatus.RESERVED,
                waitlist_position=None,
            )
            db.add(selection)

        db.flush()
        _settle_placement(db, selection, enrollment)
        results = recompute_sessions(db, affected)
        refresh_enrollments(db, _touched(results, enrollment.id), today)
        return SelectionOutcome(selection.id, session.id, placement_of(selection))

    outcome = run_in_transaction(db, _op)
    logger.info(
        "matrícula %s escolheu turma %s: %s", enrollment_id, outcome.session_id, outcome.status.value
    )
    return outcome


def remove_selection(
    db: Session,
    *,
    selection_id: int,
    requester_enrollment_id: int,
    today: Optional[date] = None,
) -> AllocationResult:
    def _op(db: Session) -> AllocationResult:
        selection = db.get(Selection, selection_id)
        if selection is None:
            raise NotFound("Seleção não encontrada.", details={"selection_id": selection_id})
        if selection.enrollment_id != requester_enrollment_id:
            raise PermissionDenied("Esta seleção não pertence à sua pré-matrícula.")

        session_id = selection.session_id
        enrollment_id = selection.enrollment_id
        db.delete(selection)
        result = recompute_session(db, session_id)
        refresh_enrollments(db, _touched([result], enrollment_id), today)
        return result

    return run_in_transaction(db, _op)


def attach_plan(
    db: Session,
    *,
    selection_id: int,
    plan_id: str,
    requester_enrollment_id: Optional[int] = None,
    today: Optional[date] = None,
) -> Selection:
    def _op(db: Session) -> Selection:
        selection = db.get(Selection, selection_id)
        if selection is None:
            raise NotFound("Seleção não encontrada.", details={"selection_id": selection_id})
        if requester_enrollment_id is not None and selection.enrollment_id != requester_enrollment_id:
            raise PermissionDenied("Esta seleção não pertence à sua pré-matrícula.")
        plan = db.get(PaymentPlan, plan_id)
        if plan is None:
            raise NotFound("Plano não encontrado.", details={"plan_id": plan_id})
        if plan.course_id != selection.course_id:
            raise IncompatiblePlan(details={"plan_course_id": plan.course_id, "selection_course_id": selection.course_id})

        # plano não mexe em vagas: só o total da matrícula muda
        selection.plan_id = plan.id
        refresh_enrollments(db, [selection.enrollment_id], today)
        return selection

    return run_in_transaction(db, _op)


# ---------------------------------------------------------------------------
# Administração
# ---------------------------------------------------------------------------

def set_session_capacity(
    db: Session,
    *,
    session_id: int,
    capacity: int,
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> AllocationResult:
    if capacity < 1:
        raise InvalidCapacity(details={"capacity": capacity})

    def _op(db: Session) -> AllocationResult:
        session = lock_session(db, session_id)
        previous = session.capacity
        session.capacity = capacity
        result = recompute_session(db, session.id)
        refresh_enrollments(db, result.touched_enrollment_ids, today)
        record_audit(
            db, user_id=actor_id, entity="course_session", entity_id=session.id,
            action="set_capacity", diff={"capacity": [previous, capacity]},
        )
        return result

    return run_in_transaction(db, _op)


def update_session_details(
    db: Session,
    *,
    session_id: int,
    capacity: int,
    weekday: str,
    start_time: str,
    end_time: str,
    level: str,
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> AllocationResult:
    fields = {
        "weekday": (weekday or "").strip(),
        "start_time": (start_time or "").strip(),
        "end_time": (end_time or "").strip(),
        "level": (level or "").strip(),
    }
    if not all(fields.values()):
        raise InvalidRequest("Dia, horários e nível são obrigatórios.")
    if capacity < 1:
        raise InvalidCapacity(details={"capacity": capacity})

    def _op(db: Session) -> AllocationResult:
        session = lock_session(db, session_id)
        diff = {}
        for name, value in {**fields, "capacity": capacity}.items():
            current = getattr(session, name)
            if current != value:
                diff[name] = [current, value]
                setattr(session, name, value)
        result = recompute_session(db, session.id)
        refresh_enrollments(db, result.touched_enrollment_ids, today)
        record_audit(db, user_id=actor_id, entity="course_session", entity_id=session.id, action="update", diff=diff)
        return result

    return run_in_transaction(db, _op)


def force_waitlist_only(
    db: Session,
    *,
    session_id: int,
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> AllocationResult:
    def _op(db: Session) -> AllocationResult:
        session = lock_session(db, session_id)
        reserved, _ = eligible_counts(db, session.id)
        previous = session.capacity
        # congela: quem já tem vaga fica, qualquer novo vai para a espera
        session.capacity = reserved
        result = recompute_session(db, session.id)
        refresh_enrollments(db, result.touched_enrollment_ids, today)
        record_audit(
            db, user_id=actor_id, entity="course_session", entity_id=session.id,
            action="waitlist_only", diff={"capacity": [previous, reserved]},
        )
        return result

    return run_in_transaction(db, _op)


def move_selection(
    db: Session,
    *,
    selection_id: int,
    new_session_id: int,
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> SelectionOutcome:
    def _op(db: Session) -> SelectionOutcome:
        selection = db.get(Selection, selection_id)
        if selection is None:
            raise NotFound("Seleção não encontrada.", details={"selection_id": selection_id})
        target = db.get(CourseSession, new_session_id)
        if target is None:
            raise NotFound("Turma não encontrada.", details={"session_id": new_session_id})
        if target.course_id != selection.course_id:
            raise InvalidRequest(
                "A turma de destino pertence a outro curso.",
                details={"selection_course_id": selection.course_id, "session_course_id": target.course_id},
            )

        source_id = selection.session_id
        if source_id == target.id:
            return SelectionOutcome(selection.id, target.id, placement_of(selection))

        selection.session_id = target.id
        selection.queued_at = utcnow()
        db.flush()
        _settle_placement(db, selection, selection.enrollment)
        results = recompute_sessions(db, [source_id, target.id])
        refresh_enrollments(db, _touched(results, selection.enrollment_id), today)
        record_audit(
            db, user_id=actor_id, entity="selection", entity_id=selection.id,
            action="move", diff={"session_id": [source_id, target.id]},
        )
        return SelectionOutcome(selection.id, target.id, placement_of(selection))

    return run_in_transaction(db, _op)


def recompute_enrollment_sessions(db: Session, enrollment_id: int, today: Optional[date] = None) -> List[AllocationResult]:
    """
    Realoca todas as turmas em que a matrícula tem seleção. Usado quando a
    matrícula entra ou sai do conjunto ativo. Não faz commit: roda dentro da
    transação de quem chamou.
    """
    session_ids = db.execute(
        select(Selection.session_id).where(Selection.enrollment_id == enrollment_id)
    ).scalars().all()
    results = recompute_sessions(db, session_ids)
    refresh_enrollments(db, _touched(results, enrollment_id), today)
    return results



def requeue_enrollment_selections(db: Session, enrollment_id: int) -> None:
    """Renova queued_at das seleções: a matrícula entra agora na fila real das turmas."""
    now = utcnow()
    for selection in db.execute(
        select(Selection).where(Selection.enrollment_id == enrollment_id).order_by(Selection.id)
    ).scalars():
        selection.queued_at = now
    db.flush()
