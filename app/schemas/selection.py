# app/schemas/selection.py
from typing import List, Optional
from pydantic import BaseModel, field_validator

from app.models.selection import SelectionStatus

class SelectSessionIn(BaseModel):
    course_id: str
    session_id: int

class AttachPlanIn(BaseModel):
    plan_id: str

class MoveSelectionIn(BaseModel):
    session_id: int

class SelectionResult(BaseModel):
    """Resposta imediata da escolha de turma: vaga garantida ou posição na espera."""
    selection_id: int
    session_id: int
    status: SelectionStatus
    waitlist_position: Optional[int] = None

class CapacityUpdate(BaseModel):
    # capacidade < 1 é recusada pelo serviço (INVALID_CAPACITY)
    capacity: int

class SessionDetailsUpdate(BaseModel):
    capacity: int
    weekday: str
    start_time: str
    end_time: str
    level: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hhmm(cls, v: str):
        v = (v or "").strip()
        parts = v.split(":")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError("horário deve estar no formato HH:MM")
        hh, mm = int(parts[0]), int(parts[1])
        if not (0 <= hh < 24 and 0 <= mm < 60):
            raise ValueError("horário inválido")
        return f"{hh:02d}:{mm:02d}"

class AllocationOut(BaseModel):
    session_id: int
    capacity: int
    reserved: int
    waitlist: int
    available: int
    promoted: List[int] = []
    demoted: List[int] = []
