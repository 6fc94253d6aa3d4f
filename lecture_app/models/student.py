from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Index

from lecture_app.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    roll_number = Column(String(50), nullable=True)
    class_year = Column(String(50), nullable=False)
    division = Column(String(20), nullable=True)
    department = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("ix_students_class_division", "class_year", "division"),
    )
