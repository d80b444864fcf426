# app/api/v1/courses.py
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.course import Course
from app.schemas.course import CourseOut, PlanOut, SessionOut
from app.services.read_model import SessionStats, active_plans, list_courses, session_stats

router = APIRouter()

def course_out(course: Course, stats: Dict[int, SessionStats]) -> CourseOut:
    sessions = []
    for item in course.sessions:
        st = stats.get(item.id) or SessionStats(item.id, item.capacity, 0, 0)
        sessions.append(SessionOut(
            id=item.id, code=item.code, weekday=item.weekday,
            start_time=item.start_time, end_time=item.end_time, level=item.level,
            capacity=st.capacity, available=st.available,
            reserved=st.reserved, waitlist=st.waitlist,
        ))
    return CourseOut(
        id=course.id,
        title=course.title,
        modality=course.modality,
        description=course.description,
        materials=course.materials,
        audience=course.audience,
        bonus_limit=course.bonus_limit,
        bonus_awarded=course.bonus_awarded,
        sessions=sessions,
        plans=[PlanOut.model_validate(p) for p in active_plans(course)],
    )

@router.get("", response_model=List[CourseOut])
def get_courses(db: Session = Depends(get_db)):
    courses = list_courses(db)
    stats = session_stats(db, [s.id for c in courses for s in c.sessions])
    return [course_out(c, stats) for c in courses]
