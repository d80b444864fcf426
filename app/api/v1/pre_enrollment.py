# app/api/v1/pre_enrollment.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.rbac import require_student
from app.db.session import get_db
from app.models.user import User
from app.schemas.enrollment import BasicInfoIn, ConfirmationIn, EnrollmentOut, PaymentMethodIn
from app.schemas.selection import AttachPlanIn, SelectionResult, SelectSessionIn
from app.services import enrollments as enrollment_service
from app.services import selections as selection_service

router = APIRouter()

@router.get("", response_model=EnrollmentOut)
def get_pre_enrollment(db: Session = Depends(get_db), user: User = Depends(require_student)):
    return enrollment_service.ensure_pre_enrollment(db, user.id)

@router.put("/basic-info", response_model=EnrollmentOut)
def put_basic_info(
    body: BasicInfoIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    return enrollment_service.save_basic_info(db, user_id=user.id, data=body.model_dump())

@router.post("/selections", response_model=SelectionResult, status_code=status.HTTP_201_CREATED)
def post_selection(
    body: SelectSessionIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    enrollment = enrollment_service.ensure_pre_enrollment(db, user.id)
    outcome = selection_service.select_session(
        db, enrollment_id=enrollment.id, course_id=body.course_id, session_id=body.session_id,
    )
    return SelectionResult(
        selection_id=outcome.selection_id,
        session_id=outcome.session_id,
        status=outcome.status,
        waitlist_position=outcome.waitlist_position,
    )

@router.delete("/selections/{selection_id}", response_model=EnrollmentOut)
def delete_selection(
    selection_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    enrollment = enrollment_service.ensure_pre_enrollment(db, user.id)
    selection_service.remove_selection(db, selection_id=selection_id, requester_enrollment_id=enrollment.id)
    return enrollment_service.get_enrollment(db, enrollment.id)

@router.put("/selections/{selection_id}/plan", response_model=EnrollmentOut)
def put_selection_plan(
    selection_id: int,
    body: AttachPlanIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    enrollment = enrollment_service.ensure_pre_enrollment(db, user.id)
    selection_service.attach_plan(
        db, selection_id=selection_id, plan_id=body.plan_id, requester_enrollment_id=enrollment.id,
    )
    return enrollment_service.get_enrollment(db, enrollment.id)

@router.put("/payment-method", response_model=EnrollmentOut)
def put_payment_method(
    body: PaymentMethodIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    return enrollment_service.select_payment_method(db, user_id=user.id, method=body.payment_method)

@router.post("/submit", response_model=EnrollmentOut)
def submit(db: Session = Depends(get_db), user: User = Depends(require_student)):
    return enrollment_service.submit_pre_enrollment(db, user_id=user.id)

@router.post("/confirmation", response_model=EnrollmentOut)
def schedule_confirmation(
    body: ConfirmationIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_student),
):
    return enrollment_service.schedule_confirmation(db, user_id=user.id, day=body.date)
