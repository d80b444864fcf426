# app/services/bonus.py
"""
Bônus promocional concedido na confirmação do pagamento.

A checagem do limite e o incremento do contador acontecem num único UPDATE
condicional, então duas confirmações simultâneas nunca passam juntas pelo
"ainda tem bônus" e estouram o limite: quem chegar depois atualiza zero
linhas e sai sem conceder.
"""
import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidRequest, NotFound
from app.db.transaction import run_in_transaction
from app.models.course import Course, CourseModality
from app.models.enrollment import Enrollment
from app.models.selection import Selection
from app.services.audit import record_audit

logger = logging.getLogger(__name__)


def bonus_course_id(db: Session, enrollment_id: int) -> Optional[str]:
    """Curso da modalidade bonificada em que a matrícula tem seleção, se houver."""
    modality = CourseModality(settings.BONUS_MODALITY)
    return db.execute(
        select(Course.id)
        .join(Selection, Selection.course_id == Course.id)
        .where(Selection.enrollment_id == enrollment_id, Course.modality == modality)
        .limit(1)
    ).scalar_one_or_none()


def grant_bonus_if_eligible(db: Session, enrollment_id: int) -> bool:
    """
    Concede o bônus uma única vez por matrícula. Roda dentro da transação de
    quem chamou (confirmação de pagamento); não faz commit.
    Retorna True se o bônus foi concedido agora.
    """
    db.flush()
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None or enrollment.promo_bonus_granted:
        return False

    course_id = bonus_course_id(db, enrollment_id)
    if course_id is None:
        return False

    claimed = db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.promo_bonus_granted.is_(False))
        .values(promo_bonus_granted=True)
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed != 1:
        return False

    incremented = db.execute(
        update(Course)
        .where(
            Course.id == course_id,
            Course.bonus_limit.is_not(None),
            Course.bonus_awarded < Course.bonus_limit,
        )
        .values(bonus_awarded=Course.bonus_awarded + 1)
        .execution_options(synchronize_session=False)
    ).rowcount
    if incremented != 1:
        # limite atingido (ou sem limite configurado): devolve a marcação
        db.execute(
            update(Enrollment)
            .where(Enrollment.id == enrollment_id)
            .values(promo_bonus_granted=False)
            .execution_options(synchronize_session=False)
        )
        db.expire(enrollment)
        logger.info("bônus esgotado para o curso %s; matrícula %s sem bônus", course_id, enrollment_id)
        return False

    db.expire(enrollment)
    course = db.get(Course, course_id)
    if course is not None:
        db.expire(course)
    logger.info("bônus concedido à matrícula %s (curso %s)", enrollment_id, course_id)
    return True


def set_bonus_awarded(db: Session, *, course_id: str, value: int, actor_id: Optional[int] = None) -> Course:
    safe_value = max(0, value)

    def _op(db: Session) -> Course:
        course = db.get(Course, course_id)
        if course is None:
            raise NotFound("Curso não encontrado.", details={"course_id": course_id})
        if course.bonus_limit is not None and safe_value > course.bonus_limit:
            raise InvalidRequest(
                "Valor acima do limite de bônus do curso.",
                details={"bonus_limit": course.bonus_limit, "value": safe_value},
            )
        previous = course.bonus_awarded
        course.bonus_awarded = safe_value
        record_audit(
            db, user_id=actor_id, entity="course", entity_id=course.id,
            action="set_bonus_awarded", diff={"bonus_awarded": [previous, safe_value]},
        )
        return course

    return run_in_transaction(db, _op)
