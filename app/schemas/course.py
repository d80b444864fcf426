# app/schemas/course.py
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel

from app.models.course import CourseModality

class PlanOut(BaseModel):
    id: str
    label: str
    months: int
    price: Decimal
    discount_pct: Optional[Decimal] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}

class SessionOut(BaseModel):
    id: int
    code: str
    weekday: str
    start_time: str
    end_time: str
    level: str
    capacity: int
    available: int
    reserved: int
    waitlist: int

class CourseOut(BaseModel):
    id: str
    title: str
    modality: CourseModality
    description: Optional[str] = None
    materials: Optional[str] = None
    audience: Optional[str] = None
    bonus_limit: Optional[int] = None
    bonus_awarded: int
    sessions: List[SessionOut]
    plans: List[PlanOut]

class CourseBonusOut(BaseModel):
    id: str
    title: str
    bonus_limit: Optional[int] = None
    bonus_awarded: int

    model_config = {"from_attributes": True}

class BonusAwardedUpdate(BaseModel):
    value: int

class WaitlistEntryOut(BaseModel):
    selection_id: int
    enrollment_id: int
    student_name: str
    student_email: str
    position: int

    model_config = {"from_attributes": True}
