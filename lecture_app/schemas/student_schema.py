from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    roll_number: Optional[str] = Field(None, max_length=50)
    class_year: str = Field(..., min_length=1, max_length=50)
    division: Optional[str] = Field(None, max_length=20)
    department: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class StudentResponse(BaseModel):
    id: int
    name: str
    roll_number: Optional[str]
    class_year: str
    division: Optional[str]
    department: str
    email: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginatedStudentResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    students: List[StudentResponse]


class StudentFilter(BaseModel):
    class_year: Optional[str] = None
    division: Optional[str] = None
    department: Optional[str] = None
    search: Optional[str] = None
