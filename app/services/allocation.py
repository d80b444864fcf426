# app/services/allocation.py
"""
Motor de alocação de vagas por turma.

Para uma turma, as seleções elegíveis (de matrículas ativas) são ordenadas
por ordem de chegada na fila da turma (queued_at, id). As `capacity` primeiras ficam
RESERVADAS, sem posição; as demais vão para a lista de espera com posições
1, 2, 3... na mesma ordem. A alocação é sempre recalculada do zero e só as
linhas que mudaram são gravadas, então rodar de novo sem alterações não
escreve nada.

Seleções de matrículas fora do conjunto ativo (rascunho, recusada) não
participam do cálculo e nunca são alteradas por ele.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple, TypeVar, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models.course import CourseSession
from app.models.enrollment import ACTIVE_ENROLLMENT_STATUSES, Enrollment
from app.models.selection import Selection, SelectionStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Reserved:
    pass


@dataclass(frozen=True)
class Waitlisted:
    position: int

    def __post_init__(self):
        if self.position < 1:
            raise ValueError("waitlist position must be >= 1")


Placement = Union[Reserved, Waitlisted]

RESERVED = Reserved()


@dataclass
class AllocationResult:
    session_id: int
    capacity: int
    reserved: int = 0
    waitlist: int = 0
    promoted: List[int] = field(default_factory=list)
    demoted: List[int] = field(default_factory=list)
    changed: List[int] = field(default_factory=list)
    touched_enrollment_ids: Set[int] = field(default_factory=set)


def allocate(entries: Sequence[T], capacity: int) -> List[Tuple[T, Placement]]:
    """Particiona `entries` (já ordenadas por prioridade) em reservadas e lista de espera."""
    placements: List[Tuple[T, Placement]] = []
    reserved = 0
    position = 1
    for entry in entries:
        if reserved < capacity:
            placements.append((entry, RESERVED))
            reserved += 1
        else:
            placements.append((entry, Waitlisted(position)))
            position += 1
    return placements


def placement_of(selection: Selection) -> Placement:
    if selection.status == SelectionStatus.RESERVED:
        return RESERVED
    if selection.status == SelectionStatus.WAITLIST:
        return Waitlisted(selection.waitlist_position)
    raise ValueError(f"status de seleção desconhecido: {selection.status!r}")


def apply_placement(selection: Selection, placement: Placement) -> bool:
    """Grava a alocação nas colunas da seleção. Retorna True se algo mudou."""
    if isinstance(placement, Reserved):
        status, position = SelectionStatus.RESERVED, None
    elif isinstance(placement, Waitlisted):
        status, position = SelectionStatus.WAITLIST, placement.position
    else:
        raise TypeError(f"alocação inválida: {placement!r}")

    if selection.status == status and selection.waitlist_position == position:
        return False
    selection.status = status
    selection.waitlist_position = position
    return True


def _active_statuses():
    return list(ACTIVE_ENROLLMENT_STATUSES)


def eligible_selections(db: Session, session_id: int) -> List[Selection]:
    stmt = (
        select(Selection)
        .join(Enrollment, Enrollment.id == Selection.enrollment_id)
        .where(
            Selection.session_id == session_id,
            Enrollment.status.in_(_active_statuses()),
        )
        .order_by(Selection.queued_at.asc(), Selection.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def eligible_counts(db: Session, session_id: int) -> Tuple[int, int]:
    """(reservadas, em espera) entre as seleções elegíveis da turma, como estão gravadas."""
    rows = db.execute(
        select(Selection.status, func.count())
        .join(Enrollment, Enrollment.id == Selection.enrollment_id)
        .where(
            Selection.session_id == session_id,
            Enrollment.status.in_(_active_statuses()),
        )
        .group_by(Selection.status)
    ).all()
    counts = {status: total for status, total in rows}
    return counts.get(SelectionStatus.RESERVED, 0), counts.get(SelectionStatus.WAITLIST, 0)


def lock_session(db: Session, session_id: int) -> CourseSession:
    session = db.execute(
        select(CourseSession).where(CourseSession.id == session_id).with_for_update()
    ).scalar_one_or_none()
    if session is None:
        raise NotFound("Turma não encontrada.", details={"session_id": session_id})
    return session


def recompute_session(db: Session, session_id: int) -> AllocationResult:
    # SessionLocal usa autoflush=False: alterações pendentes precisam ir ao banco antes da leitura
    db.flush()
    session = lock_session(db, session_id)
    result = AllocationResult(session_id=session.id, capacity=session.capacity)

    for selection, placement in allocate(eligible_selections(db, session.id), session.capacity):
        before = placement_of(selection)
        if apply_placement(selection, placement):
            result.changed.append(selection.id)
            result.touched_enrollment_ids.add(selection.enrollment_id)
            if isinstance(before, Waitlisted) and isinstance(placement, Reserved):
                result.promoted.append(selection.id)
            elif isinstance(before, Reserved) and isinstance(placement, Waitlisted):
                result.demoted.append(selection.id)
        if isinstance(placement, Reserved):
            result.reserved += 1
        else:
            result.waitlist += 1

    db.flush()
    if result.changed:
        logger.info(
            "turma %s realocada: capacidade=%s reservadas=%s espera=%s promovidas=%s rebaixadas=%s",
            session.id, session.capacity, result.reserved, result.waitlist, result.promoted, result.demoted,
        )
    return result


def provisional_placement(db: Session, session_id: int) -> Placement:
    """
    Alocação prévia de uma seleção que ainda não é elegível (matrícula em
    rascunho): a seleção entra como se fosse a última da fila.
    """
    db.flush()
    session = lock_session(db, session_id)
    reserved, waitlist = eligible_counts(db, session.id)
    if reserved < session.capacity:
        return RESERVED
    return Waitlisted(waitlist + 1)


def recompute_sessions(db: Session, session_ids: Optional[Sequence[int]]) -> List[AllocationResult]:
    """Recalcula várias turmas (ids repetidos ou None são ignorados), em ordem de id."""
    unique_ids = sorted({sid for sid in (session_ids or []) if sid is not None})
    return [recompute_session(db, sid) for sid in unique_ids]
