from typing import Optional, List

from pydantic import BaseModel, Field

from lecture_app.core.enums import AttendanceStatus, RosterStatus
from lecture_app.schemas.lecture import LectureMeta


class MarkRequest(BaseModel):
    lecture_id: int
    student_id: int
    status: AttendanceStatus
    user_id: Optional[int] = None
    note: Optional[str] = Field(None, max_length=500)


class MarkResponse(BaseModel):
    success: bool
    message: str
    attendance_id: int
    status: AttendanceStatus


class MarkAllRequest(BaseModel):
    lecture_id: int
    class_year: str = Field(..., min_length=1)
    user_id: Optional[int] = None


class MarkAllResponse(BaseModel):
    success: bool
    message: str
    updated: int
    unchanged: int
    failed: int
    total: int


class ResetResponse(BaseModel):
    success: bool
    deleted: int


class RosterEntry(BaseModel):
    id: int
    name: str
    roll_number: Optional[str]
    class_year: str
    division: Optional[str]
    department: str
    status: RosterStatus
    note: str = ""


class RosterResponse(BaseModel):
    roster: List[RosterEntry]
    lecture: LectureMeta
