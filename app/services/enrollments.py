# app/services/enrollments.py
"""Fluxo da pré-matrícula (aluno) e ações administrativas sobre a matrícula."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.errors import InvalidRequest, NotFound
from app.db.transaction import run_in_transaction
from app.models.enrollment import (
    ACTIVE_ENROLLMENT_STATUSES,
    CLOSED_ENROLLMENT_STATUSES,
    Enrollment,
    EnrollmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from app.models.selection import Selection
from app.models.token_counter import TokenCounter
from app.models.user import User
from app.services.audit import record_audit
from app.services.bonus import grant_bonus_if_eligible
from app.services.pricing import local_today
from app.services.selections import recompute_enrollment_sessions, requeue_enrollment_selections

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "R"

def _with_relations():
    return selectinload(Enrollment.selections).options(
        selectinload(Selection.course),
        selectinload(Selection.session),
        selectinload(Selection.plan),
    )

def current_enrollment(db: Session, user_id: int) -> Optional[Enrollment]:
    """Pré-matrícula em andamento do usuário (a mais recente que não foi confirmada nem recusada)."""
    return db.execute(
        select(Enrollment)
        .where(Enrollment.user_id == user_id, Enrollment.status.not_in(list(CLOSED_ENROLLMENT_STATUSES)))
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
        .options(_with_relations())
        .execution_options(populate_existing=True)
        .limit(1)
    ).scalar_one_or_none()

def ensure_pre_enrollment(db: Session, user_id: int) -> Enrollment:
    current = current_enrollment(db, user_id)
    if current is not None:
        return current

    def _op(db: Session) -> int:
        enrollment = Enrollment(user_id=user_id, status=EnrollmentStatus.DRAFT)
        db.add(enrollment)
        db.flush()
        return enrollment.id

    enrollment_id = run_in_transaction(db, _op)
    logger.info("pré-matrícula %s criada para o usuário %s", enrollment_id, user_id)
    return get_enrollment(db, enrollment_id)

def get_enrollment(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = db.execute(
        select(Enrollment)
        .where(Enrollment.id == enrollment_id)
        .options(_with_relations())
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if enrollment is None:
        raise NotFound("Pré-matrícula não encontrada.", details={"enrollment_id": enrollment_id})
    return enrollment

def list_enrollments(db: Session, status: Optional[EnrollmentStatus] = None) -> List[Enrollment]:
    stmt = (
        select(Enrollment)
        .options(_with_relations(), selectinload(Enrollment.user))
        .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
    )
    if status is not None:
        stmt = stmt.where(Enrollment.status == status)
    return list(db.execute(stmt).scalars().all())

# ---------------------------------------------------------------------------
# Aluno
# ---------------------------------------------------------------------------

def save_basic_info(db: Session, *, user_id: int, data: Dict[str, Any]) -> Enrollment:
    enrollment_id = ensure_pre_enrollment(db, user_id).id
    has_enem = bool(data.get("has_enem")) and data.get("enem_score") is not None

    def _op(db: Session) -> None:
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("Usuário não encontrado.")
        user.name = data["full_name"]

        enrollment = db.get(Enrollment, enrollment_id)
        for field in ("age", "school", "grade", "objective", "level", "has_enem"):
            setattr(enrollment, field, data.get(field))
        enrollment.enem_score = data.get("enem_score") if has_enem else None
        if data.get("study_goal") is not None:
            enrollment.study_goal = data["study_goal"]

    run_in_transaction(db, _op)
    return get_enrollment(db, enrollment_id)

def select_payment_method(db: Session, *, user_id: int, method: PaymentMethod) -> Enrollment:
    enrollment_id = ensure_pre_enrollment(db, user_id).id

    def _op(db: Session) -> None:
        db.get(Enrollment, enrollment_id).payment_method = method

    run_in_transaction(db, _op)
    return get_enrollment(db, enrollment_id)

def submit_pre_enrollment(db: Session, *, user_id: int, today: Optional[date] = None) -> Enrollment:
    enrollment = ensure_pre_enrollment(db, user_id)
    enrollment_id = enrollment.id

    if not enrollment.age or not enrollment.school or not enrollment.objective:
        raise InvalidRequest("Preencha seus dados básicos primeiro.")
    if not enrollment.selections:
        raise InvalidRequest("Escolha ao menos uma turma.")
    if any(item.plan_id is None for item in enrollment.selections):
        raise InvalidRequest("Escolha um plano para cada modalidade.")
    if enrollment.payment_method is None:
        raise InvalidRequest("Selecione a forma de pagamento.")

    def _op(db: Session) -> None:
        row = db.get(Enrollment, enrollment_id)
        was_active = row.is_active
        if row.status == EnrollmentStatus.DRAFT:
            row.status = EnrollmentStatus.SUBMITTED
        # entrou no conjunto ativo: a prévia dá lugar à fila real, a partir de agora
        if row.is_active and not was_active:
            requeue_enrollment_selections(db, row.id)
            recompute_enrollment_sessions(db, row.id, today)

    run_in_transaction(db, _op)
    logger.info("pré-matrícula %s enviada", enrollment_id)
    return get_enrollment(db, enrollment_id)

def next_token(db: Session) -> Tuple[str, int]:
    """Próximo número da sequência de tokens (incremento atômico no banco)."""
    number = db.execute(
        update(TokenCounter)
        .where(TokenCounter.id == 1)
        .values(last_number=TokenCounter.last_number + 1)
        .returning(TokenCounter.last_number)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()
    if number is None:
        db.add(TokenCounter(id=1, last_number=1))
        db.flush()
        number = 1
    return f"{TOKEN_PREFIX}{number:05d}", number

def schedule_confirmation(db: Session, *, user_id: int, day: date, today: Optional[date] = None) -> Enrollment:
    today = today or local_today()
    if day < settings.MIN_CONFIRMATION_DATE:
        raise InvalidRequest(
            f"Escolha uma data a partir de {settings.MIN_CONFIRMATION_DATE.strftime('%d/%m/%Y')}."
        )
    if day > today + timedelta(days=settings.CONFIRMATION_MAX_DAYS_AHEAD):
        raise InvalidRequest("Escolha uma data dentro dos próximos 12 meses.")

    enrollment = ensure_pre_enrollment(db, user_id)
    if enrollment.status == EnrollmentStatus.DRAFT:
        raise InvalidRequest("Envie sua pré-matrícula antes de escolher a confirmação presencial.")
    enrollment_id = enrollment.id

    def _op(db: Session) -> None:
        row = db.get(Enrollment, enrollment_id)
        # token é emitido uma vez e nunca muda
        if not row.token:
            row.token, row.token_sequence = next_token(db)
        row.confirmation_day = day
        row.confirmation_date = datetime.now(timezone.utc)
        if row.status == EnrollmentStatus.SUBMITTED:
            row.status = EnrollmentStatus.WAITING_PAYMENT

    run_in_transaction(db, _op)
    return get_enrollment(db, enrollment_id)

# ---------------------------------------------------------------------------
# Administração
# ---------------------------------------------------------------------------

def update_enrollment_status(
    db: Session,
    *,
    enrollment_id: int,
    status: EnrollmentStatus,
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> Enrollment:
    def _op(db: Session) -> None:
        row = db.get(Enrollment, enrollment_id)
        if row is None:
            raise NotFound("Pré-matrícula não encontrada.", details={"enrollment_id": enrollment_id})
        previous = row.status
        row.status = status
        # entrou ou saiu do conjunto ativo: as turmas dela precisam ser realocadas
        if (previous in ACTIVE_ENROLLMENT_STATUSES) != (status in ACTIVE_ENROLLMENT_STATUSES):
            if status in ACTIVE_ENROLLMENT_STATUSES:
                requeue_enrollment_selections(db, row.id)
            recompute_enrollment_sessions(db, row.id, today)
        record_audit(
            db, user_id=actor_id, entity="enrollment", entity_id=row.id,
            action="update_status", diff={"status": [previous.value, status.value]},
        )

    run_in_transaction(db, _op)
    return get_enrollment(db, enrollment_id)

def update_payment_status(
    db: Session,
    *,
    enrollment_id: int,
    status: PaymentStatus,
    actor_id: Optional[int] = None,
) -> Tuple[Enrollment, bool]:
    def _op(db: Session) -> bool:
        row = db.get(Enrollment, enrollment_id)
        if row is None:
            raise NotFound("Pré-matrícula não encontrada.", details={"enrollment_id": enrollment_id})
        previous = row.payment_status
        row.payment_status = status
        record_audit(
            db, user_id=actor_id, entity="enrollment", entity_id=row.id,
            action="update_payment_status", diff={"payment_status": [previous.value, status.value]},
        )
        if status == PaymentStatus.CONFIRMED and previous != PaymentStatus.CONFIRMED:
            return grant_bonus_if_eligible(db, row.id)
        return False

    granted = run_in_transaction(db, _op)
    return get_enrollment(db, enrollment_id), granted
