from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index

from lecture_app.database import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    lecture_id = Column(Integer, ForeignKey("lectures.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    status = Column(String(10), nullable=False)
    note = Column(String(500), nullable=True)
    user_id = Column(Integer, nullable=True)
    # Written from the request clock, not the database clock, so week
    # boundaries stay in server-local time
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_attendance_lecture_created", "lecture_id", "created_at"),
        Index("ix_attendance_student", "student_id"),
    )
