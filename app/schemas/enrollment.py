# app/schemas/enrollment.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.enrollment import EnrollmentStatus, Level, Objective, PaymentMethod, PaymentStatus
from app.models.selection import SelectionStatus

class BasicInfoIn(BaseModel):
    full_name: str = Field(min_length=3)
    age: int = Field(ge=10, le=80)
    school: str = Field(min_length=2)
    grade: str = Field(min_length=2)
    objective: Objective
    level: Level
    has_enem: bool
    enem_score: Optional[int] = Field(default=None, ge=0, le=1000)
    study_goal: Optional[str] = Field(default=None, min_length=3, max_length=200)

class PaymentMethodIn(BaseModel):
    payment_method: PaymentMethod

class ConfirmationIn(BaseModel):
    date: date

class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus

class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus

class SelectionCourse(BaseModel):
    id: str
    title: str
    modality: str

    model_config = {"from_attributes": True}

class SelectionSession(BaseModel):
    id: int
    code: str
    weekday: str
    start_time: str
    end_time: str
    level: str

    model_config = {"from_attributes": True}

class SelectionPlan(BaseModel):
    id: str
    label: str
    price: Decimal
    months: int

    model_config = {"from_attributes": True}

class SelectionOut(BaseModel):
    id: int
    course_id: str
    session_id: int
    plan_id: Optional[str] = None
    status: SelectionStatus
    waitlist_position: Optional[int] = None
    created_at: datetime
    course: SelectionCourse
    session: SelectionSession
    plan: Optional[SelectionPlan] = None

    model_config = {"from_attributes": True}

class EnrollmentOut(BaseModel):
    id: int
    user_id: int
    status: EnrollmentStatus
    payment_method: Optional[PaymentMethod] = None
    payment_status: PaymentStatus
    total_amount: Decimal
    registration_fee: Decimal
    registration_fee_discount: bool
    has_waitlist: bool
    promo_bonus_granted: bool
    objective: Optional[Objective] = None
    level: Optional[Level] = None
    age: Optional[int] = None
    school: Optional[str] = None
    grade: Optional[str] = None
    study_goal: Optional[str] = None
    has_enem: Optional[bool] = None
    enem_score: Optional[int] = None
    confirmation_day: Optional[date] = None
    token: Optional[str] = None
    selections: List[SelectionOut] = []

    model_config = {"from_attributes": True}

class EnrollmentUser(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}

class AdminEnrollmentOut(EnrollmentOut):
    user: EnrollmentUser
    created_at: datetime

class PaymentStatusResult(BaseModel):
    enrollment: EnrollmentOut
    bonus_granted: bool
