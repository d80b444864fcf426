from sqlalchemy import func, select

from app.db.init_db import init_db, plan_slug
from app.models.course import Course, CourseSession, PaymentPlan
from app.models.token_counter import TokenCounter
from app.models.user import User, UserRole


def _count(db, model):
    return db.scalar(select(func.count()).select_from(model))


def test_seed_builds_catalog(db):
    init_db(db)

    assert _count(db, Course) == 4
    assert _count(db, CourseSession) == 14
    assert db.get(Course, "redacao").bonus_limit == 10
    assert db.get(PaymentPlan, plan_slug("exatas", "1º Semestre (5 meses)")) is not None
    assert db.get(TokenCounter, 1).last_number == 0
    admin = db.scalar(select(User).where(User.role == UserRole.ADMIN))
    assert admin is not None


def test_seed_is_idempotent_and_keeps_admin_edits(db):
    init_db(db)
    g1 = db.scalar(select(CourseSession).where(CourseSession.code == "G1"))
    g1.capacity = 3
    db.commit()

    init_db(db)

    assert _count(db, CourseSession) == 14
    assert _count(db, PaymentPlan) == 24
    assert _count(db, User) == 2
    db.expire_all()
    assert db.scalar(select(CourseSession.capacity).where(CourseSession.code == "G1")) == 3


def test_plan_slug():
    assert plan_slug("redacao", "Bimestral (5% OFF)") == "redacao-bimestral-5-off-"
