from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Date, Index

from lecture_app.database import Base


class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    subject = Column(String(255), nullable=False)
    class_year = Column(String(50), nullable=False)
    division = Column(String(20), nullable=True)

    # Recurring weekly slots carry day_of_week; one-off lectures carry date
    day_of_week = Column(String(10), nullable=True)
    date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    room = Column(String(50), nullable=True)

    scheduled_teacher_id = Column(Integer, nullable=False, index=True)
    substitute_teacher_id = Column(Integer, nullable=True, index=True)

    # Persisted hint only, see services.status
    status = Column(String(20), nullable=False, default="scheduled")

    topic_covered = Column(String(500), nullable=True)
    syllabus_topic_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("ix_lectures_day_start", "day_of_week", "start_time"),
    )

    @property
    def is_recurring(self) -> bool:
        return bool(self.day_of_week)
