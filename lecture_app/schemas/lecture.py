import datetime as dt
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, model_validator

from lecture_app.core.enums import LectureStatus, WEEKDAYS

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class LectureCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    class_year: str = Field(..., min_length=1, max_length=50)
    division: Optional[str] = Field(None, max_length=20)
    day_of_week: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: str = Field(..., pattern=_TIME_PATTERN)
    end_time: str = Field(..., pattern=_TIME_PATTERN)
    room: Optional[str] = Field(None, max_length=50)
    scheduled_teacher_id: int

    @field_validator("day_of_week")
    @classmethod
    def check_day(cls, value):
        if value is None:
            return value
        day = value.strip().capitalize()
        if day not in WEEKDAYS:
            raise ValueError(f"day_of_week must be one of {', '.join(WEEKDAYS)}")
        return day

    @model_validator(mode="after")
    def check_slot(self):
        if not self.day_of_week and not self.date:
            raise ValueError("Either day_of_week or date is required")
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class LectureResponse(BaseModel):
    id: int
    subject: str
    class_year: str
    division: Optional[str]
    day_of_week: Optional[str]
    date: Optional[dt.date]
    start_time: str
    end_time: str
    room: Optional[str]
    scheduled_teacher_id: int
    substitute_teacher_id: Optional[int]
    topic_covered: Optional[str]
    syllabus_topic_id: Optional[int]
    status: str = Field(..., description="Effective status for the current week")
    stored_status: str = Field(..., description="Persisted status column (hint only)")
    created_at: dt.datetime


class LectureListResponse(BaseModel):
    success: bool = True
    lectures: List[LectureResponse]


class ScheduleResponse(BaseModel):
    success: bool = True
    schedule: List[LectureResponse]


class LectureStatusUpdate(BaseModel):
    status: LectureStatus


class SubstituteAssignment(BaseModel):
    substitute_teacher_id: int


class LectureDetailsUpdate(BaseModel):
    id: int
    topic_covered: Optional[str] = Field(None, max_length=500)
    syllabus_topic_id: Optional[int] = None


class LectureMeta(BaseModel):
    id: int
    subject: str
    class_year: str
    division: Optional[str]
    day_of_week: Optional[str]
    date: Optional[dt.date]
    start_time: str
    end_time: str
    topic_covered: Optional[str]
    syllabus_topic_id: Optional[int]
    status: str
