# app/api/v1/admin.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.rbac import require_admin
from app.crud.user import user_crud
from app.db.session import get_db
from app.models.enrollment import EnrollmentStatus
from app.models.user import User
from app.schemas.course import BonusAwardedUpdate, CourseBonusOut, WaitlistEntryOut
from app.schemas.enrollment import (
    AdminEnrollmentOut,
    EnrollmentOut,
    EnrollmentStatusUpdate,
    PaymentStatusResult,
    PaymentStatusUpdate,
)
from app.schemas.selection import (
    AllocationOut,
    CapacityUpdate,
    MoveSelectionIn,
    SelectionResult,
    SessionDetailsUpdate,
)
from app.schemas.user import AdminUserUpdate, UserOut
from app.services import bonus as bonus_service
from app.services import enrollments as enrollment_service
from app.services import selections as selection_service
from app.services.allocation import AllocationResult
from app.services.read_model import get_session_stats, session_waitlist

router = APIRouter()

def _allocation_out(db: Session, result: AllocationResult) -> AllocationOut:
    stats = get_session_stats(db, result.session_id)
    return AllocationOut(
        session_id=result.session_id,
        capacity=stats.capacity,
        reserved=stats.reserved,
        waitlist=stats.waitlist,
        available=stats.available,
        promoted=list(result.promoted),
        demoted=list(result.demoted),
    )

# -------- matrículas --------
@router.get("/enrollments", response_model=List[AdminEnrollmentOut])
def list_enrollments(
    status: Optional[EnrollmentStatus] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return enrollment_service.list_enrollments(db, status=status)

@router.patch("/enrollments/{enrollment_id}/status", response_model=AdminEnrollmentOut)
def patch_enrollment_status(
    enrollment_id: int,
    body: EnrollmentStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return enrollment_service.update_enrollment_status(
        db, enrollment_id=enrollment_id, status=body.status, actor_id=admin.id,
    )

@router.patch("/enrollments/{enrollment_id}/payment-status", response_model=PaymentStatusResult)
def patch_payment_status(
    enrollment_id: int,
    body: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    enrollment, granted = enrollment_service.update_payment_status(
        db, enrollment_id=enrollment_id, status=body.status, actor_id=admin.id,
    )
    return PaymentStatusResult(enrollment=EnrollmentOut.model_validate(enrollment), bonus_granted=granted)

# -------- turmas --------
@router.put("/sessions/{session_id}", response_model=AllocationOut)
def put_session(
    session_id: int,
    body: SessionDetailsUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = selection_service.update_session_details(
        db, session_id=session_id, actor_id=admin.id, **body.model_dump(),
    )
    return _allocation_out(db, result)

@router.put("/sessions/{session_id}/capacity", response_model=AllocationOut)
def put_session_capacity(
    session_id: int,
    body: CapacityUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = selection_service.set_session_capacity(
        db, session_id=session_id, capacity=body.capacity, actor_id=admin.id,
    )
    return _allocation_out(db, result)

@router.post("/sessions/{session_id}/waitlist-only", response_model=AllocationOut)
def post_waitlist_only(
    session_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = selection_service.force_waitlist_only(db, session_id=session_id, actor_id=admin.id)
    return _allocation_out(db, result)

@router.get("/sessions/{session_id}/waitlist", response_model=List[WaitlistEntryOut])
def get_waitlist(
    session_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return session_waitlist(db, session_id)

# -------- seleções --------
@router.post("/selections/{selection_id}/move", response_model=SelectionResult)
def post_move_selection(
    selection_id: int,
    body: MoveSelectionIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    outcome = selection_service.move_selection(
        db, selection_id=selection_id, new_session_id=body.session_id, actor_id=admin.id,
    )
    return SelectionResult(
        selection_id=outcome.selection_id,
        session_id=outcome.session_id,
        status=outcome.status,
        waitlist_position=outcome.waitlist_position,
    )

# -------- bônus --------
@router.put("/courses/{course_id}/bonus-awarded", response_model=CourseBonusOut)
def put_bonus_awarded(
    course_id: str,
    body: BonusAwardedUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return bonus_service.set_bonus_awarded(db, course_id=course_id, value=body.value, actor_id=admin.id)

# -------- usuários --------
@router.put("/users/{user_id}", response_model=UserOut)
def put_user_account(
    user_id: int,
    body: AdminUserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = user_crud.get(db, user_id)
    if user is None:
        raise NotFound("Usuário não encontrado.", details={"user_id": user_id})
    return UserOut.model_validate(user_crud.update_account(db, user, body, actor_id=admin.id))
