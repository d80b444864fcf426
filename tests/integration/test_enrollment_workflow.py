from datetime import date

import pytest

from app.core.errors import InvalidRequest, NotFound
from app.models.enrollment import EnrollmentStatus, Level, Objective, PaymentMethod
from app.models.selection import Selection, SelectionStatus
from app.models.user import User
from app.services import enrollments as workflow
from app.services import selections as ops
from app.services.read_model import get_session_stats
from tests.factories import make_course, make_enrollment, make_plan, make_session, make_user, with_basic_info

TODAY = date(2026, 2, 1)

BASIC_INFO = {
    "full_name": "Maria Souza",
    "age": 17,
    "school": "Colégio Estadual",
    "grade": "3º ano",
    "objective": Objective.ENEM,
    "level": Level.INTERMEDIARIO,
    "has_enem": False,
    "enem_score": 720,
    "study_goal": None,
}


@pytest.fixture
def course(db):
    return make_course(db)


def _ready_draft(db, course, session, user=None):
    """Rascunho com dados básicos, forma de pagamento e uma turma com plano."""
    user = user or make_user(db)
    enrollment = workflow.ensure_pre_enrollment(db, user.id)
    with_basic_info(db, enrollment)
    outcome = ops.select_session(
        db, enrollment_id=enrollment.id, course_id=course.id, session_id=session.id, today=TODAY,
    )
    plan = make_plan(db, course)
    ops.attach_plan(db, selection_id=outcome.selection_id, plan_id=plan.id, today=TODAY)
    return user, enrollment, outcome


class TestEnsurePreEnrollment:
    def test_creates_a_draft_once(self, db):
        user = make_user(db)

        first = workflow.ensure_pre_enrollment(db, user.id)
        second = workflow.ensure_pre_enrollment(db, user.id)

        assert first.id == second.id
        assert first.status == EnrollmentStatus.DRAFT

    def test_closed_enrollment_starts_a_new_one(self, db):
        user = make_user(db)
        closed = make_enrollment(db, user, status=EnrollmentStatus.CONFIRMED)

        current = workflow.ensure_pre_enrollment(db, user.id)

        assert current.id != closed.id


class TestBasicInfoAndPayment:
    def test_saves_basic_info_and_user_name(self, db):
        user = make_user(db)

        enrollment = workflow.save_basic_info(db, user_id=user.id, data=BASIC_INFO)

        assert enrollment.school == "Colégio Estadual"
        assert enrollment.objective == Objective.ENEM
        # sem ENEM, a nota informada é descartada
        assert enrollment.enem_score is None
        db.expire_all()
        assert db.get(User, user.id).name == "Maria Souza"

    def test_keeps_enem_score_when_has_enem(self, db):
        user = make_user(db)

        enrollment = workflow.save_basic_info(db, user_id=user.id, data={**BASIC_INFO, "has_enem": True})

        assert enrollment.enem_score == 720

    def test_select_payment_method(self, db):
        user = make_user(db)

        enrollment = workflow.select_payment_method(db, user_id=user.id, method=PaymentMethod.BOLETO)

        assert enrollment.payment_method == PaymentMethod.BOLETO


class TestSubmit:
    def test_requires_basic_info(self, db):
        user = make_user(db)

        with pytest.raises(InvalidRequest):
            workflow.submit_pre_enrollment(db, user_id=user.id)

    def test_requires_a_plan_for_every_selection(self, db, course):
        user = make_user(db)
        enrollment = workflow.ensure_pre_enrollment(db, user.id)
        with_basic_info(db, enrollment)
        ops.select_session(db, enrollment_id=enrollment.id, course_id=course.id, session_id=make_session(db, course).id)

        with pytest.raises(InvalidRequest):
            workflow.submit_pre_enrollment(db, user_id=user.id)

    def test_submission_joins_the_real_queue(self, db, course):
        session = make_session(db, course, capacity=1)
        user, enrollment, outcome = _ready_draft(db, course, session)
        assert get_session_stats(db, session.id).reserved == 0

        submitted = workflow.submit_pre_enrollment(db, user_id=user.id, today=TODAY)

        assert submitted.status == EnrollmentStatus.SUBMITTED
        assert submitted.selections[0].status == SelectionStatus.RESERVED
        assert get_session_stats(db, session.id).reserved == 1

    def test_submission_behind_a_full_session_waits(self, db, course):
        session = make_session(db, course, capacity=1)
        ops.select_session(
            db, enrollment_id=make_enrollment(db).id, course_id=course.id, session_id=session.id, today=TODAY,
        )
        user, _, outcome = _ready_draft(db, course, session)
        assert outcome.waitlist_position == 1

        submitted = workflow.submit_pre_enrollment(db, user_id=user.id, today=TODAY)

        assert submitted.has_waitlist is True
        assert submitted.selections[0].waitlist_position == 1
        assert get_session_stats(db, session.id).waitlist == 1

    def test_draft_choice_does_not_jump_ahead_of_submitted_students(self, db, course):
        session = make_session(db, course, capacity=1)
        user, _, _ = _ready_draft(db, course, session)
        ahead = ops.select_session(
            db, enrollment_id=make_enrollment(db).id, course_id=course.id, session_id=session.id, today=TODAY,
        )
        assert ahead.status == SelectionStatus.RESERVED

        submitted = workflow.submit_pre_enrollment(db, user_id=user.id, today=TODAY)

        # a escolha do rascunho é anterior, mas a fila real começa no envio
        assert submitted.selections[0].status == SelectionStatus.WAITLIST
        assert submitted.selections[0].waitlist_position == 1
        db.expire_all()
        assert db.get(Selection, ahead.selection_id).status == SelectionStatus.RESERVED


class TestScheduleConfirmation:
    def _submitted(self, db, course):
        user, _, _ = _ready_draft(db, course, make_session(db, course, capacity=5))
        workflow.submit_pre_enrollment(db, user_id=user.id, today=TODAY)
        return user

    def test_tokens_are_sequential_and_issued_once(self, db, course):
        first_user = self._submitted(db, course)
        second_user = self._submitted(db, course)

        first = workflow.schedule_confirmation(db, user_id=first_user.id, day=date(2026, 2, 10), today=TODAY)
        second = workflow.schedule_confirmation(db, user_id=second_user.id, day=date(2026, 2, 10), today=TODAY)
        again = workflow.schedule_confirmation(db, user_id=first_user.id, day=date(2026, 2, 12), today=TODAY)

        assert (first.token, second.token) == ("R00001", "R00002")
        assert again.token == "R00001"
        assert again.confirmation_day == date(2026, 2, 12)
        assert first.status == EnrollmentStatus.WAITING_PAYMENT

    def test_draft_cannot_schedule(self, db):
        user = make_user(db)

        with pytest.raises(InvalidRequest):
            workflow.schedule_confirmation(db, user_id=user.id, day=date(2026, 2, 10), today=TODAY)

    @pytest.mark.parametrize("day", [date(2025, 12, 1), date(2027, 6, 1)])
    def test_date_window(self, db, course, day):
        user = self._submitted(db, course)

        with pytest.raises(InvalidRequest):
            workflow.schedule_confirmation(db, user_id=user.id, day=day, today=TODAY)


class TestAdminStatus:
    def test_rejection_frees_slot_for_waitlist(self, db, course):
        session = make_session(db, course, capacity=1)
        holder = make_enrollment(db)
        waiting = make_enrollment(db)
        ops.select_session(db, enrollment_id=holder.id, course_id=course.id, session_id=session.id, today=TODAY)
        ops.select_session(db, enrollment_id=waiting.id, course_id=course.id, session_id=session.id, today=TODAY)

        workflow.update_enrollment_status(db, enrollment_id=holder.id, status=EnrollmentStatus.REJECTED, today=TODAY)

        promoted = workflow.get_enrollment(db, waiting.id)
        assert promoted.selections[0].status == SelectionStatus.RESERVED
        assert promoted.has_waitlist is False

    def test_reactivated_enrollment_rejoins_at_the_back(self, db, course):
        session = make_session(db, course, capacity=1)
        first = make_enrollment(db)
        second = make_enrollment(db)
        ops.select_session(db, enrollment_id=first.id, course_id=course.id, session_id=session.id, today=TODAY)
        ops.select_session(db, enrollment_id=second.id, course_id=course.id, session_id=session.id, today=TODAY)
        workflow.update_enrollment_status(db, enrollment_id=first.id, status=EnrollmentStatus.REJECTED, today=TODAY)

        reactivated = workflow.update_enrollment_status(
            db, enrollment_id=first.id, status=EnrollmentStatus.SUBMITTED, today=TODAY,
        )

        assert reactivated.selections[0].status == SelectionStatus.WAITLIST
        assert reactivated.selections[0].waitlist_position == 1
        assert workflow.get_enrollment(db, second.id).selections[0].status == SelectionStatus.RESERVED

    def test_status_change_within_active_set_keeps_allocation(self, db, course):
        session = make_session(db, course, capacity=1)
        enrollment = make_enrollment(db)
        ops.select_session(db, enrollment_id=enrollment.id, course_id=course.id, session_id=session.id)

        updated = workflow.update_enrollment_status(
            db, enrollment_id=enrollment.id, status=EnrollmentStatus.UNDER_REVIEW,
        )

        assert updated.selections[0].status == SelectionStatus.RESERVED

    def test_unknown_enrollment(self, db):
        with pytest.raises(NotFound):
            workflow.update_enrollment_status(db, enrollment_id=404, status=EnrollmentStatus.REJECTED)

    def test_list_filters_by_status(self, db):
        submitted = make_enrollment(db, status=EnrollmentStatus.SUBMITTED)
        make_enrollment(db, status=EnrollmentStatus.DRAFT)

        listed = workflow.list_enrollments(db, status=EnrollmentStatus.SUBMITTED)

        assert [e.id for e in listed] == [submitted.id]
