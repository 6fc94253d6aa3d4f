import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Tuple, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.enums import RosterStatus
from lecture_app.core.exceptions import LectureNotFoundError, ClassMismatchError
from lecture_app.crud.attendance import get_attendance_since
from lecture_app.crud.lecture import get_lecture_by_id
from lecture_app.crud.student import get_students_for_class
from lecture_app.models.attendance import AttendanceRecord
from lecture_app.models.lecture import Lecture
from lecture_app.models.student import Student
from lecture_app.services.status import attendance_window, effective_status

logger = logging.getLogger(__name__)


@dataclass
class RosterResult:
    lecture: Lecture
    status: str
    students: List[Student] = field(default_factory=list)
    marks: Dict[int, Tuple[str, str]] = field(default_factory=dict)

    def entries(self) -> List[dict]:
        """Students in roster order, each with this week's status"""
        rows = []
        for student in self.students:
            status, note = self.marks.get(student.id, (RosterStatus.PENDING.value, ""))
            rows.append({
                "id": student.id,
                "name": student.name,
                "roll_number": student.roll_number,
                "class_year": student.class_year,
                "division": student.division,
                "department": student.department,
                "status": status,
                "note": note,
            })
        return rows

    def lecture_meta(self) -> dict:
        lecture = self.lecture
        return {
            "id": lecture.id,
            "subject": lecture.subject,
            "class_year": lecture.class_year,
            "division": lecture.division,
            "day_of_week": lecture.day_of_week,
            "date": lecture.date,
            "start_time": lecture.start_time,
            "end_time": lecture.end_time,
            "topic_covered": lecture.topic_covered,
            "syllabus_topic_id": lecture.syllabus_topic_id,
            "status": self.status,
        }


def same_class(requested: str, actual: str) -> bool:
    return (requested or "").strip().lower() == (actual or "").strip().lower()


def marks_by_student(records: Iterable[AttendanceRecord]) -> Dict[int, Tuple[str, str]]:
    """
    student_id -> (status, note). Records must be oldest first so the latest
    mark wins if legacy duplicates exist.
    """
    marks = {}
    for record in records:
        marks[record.student_id] = (record.status, record.note or "")
    return marks


async def load_lecture_for_class(db: AsyncSession, lecture_id: int, class_year: str) -> Lecture:
    lecture = await get_lecture_by_id(db, lecture_id)
    if not lecture:
        raise LectureNotFoundError(lecture_id)

    if not same_class(class_year, lecture.class_year):
        raise ClassMismatchError(lecture_id, class_year, lecture.class_year)

    return lecture


async def build_roster(
        db: AsyncSession,
        lecture_id: int,
        class_year: str,
        now: datetime
) -> RosterResult:
    """
    Merge the class roster of a lecture with its current marks.

    For recurring lectures only marks since the start of the current week
    count and earlier weeks are ignored. Dated lectures use every mark.
    Students without a counted mark are reported as pending.

    Raises:
        LectureNotFoundError: lecture does not exist
        ClassMismatchError: class_year is not the lecture's class
    """
    lecture = await load_lecture_for_class(db, lecture_id, class_year)

    students = await get_students_for_class(db, lecture.class_year, lecture.division)

    since = attendance_window(lecture, now)
    records = await get_attendance_since(db, lecture.id, since)
    marks = marks_by_student(records)

    status = effective_status(lecture, len(records), len(records))

    logger.info(
        f"Roster for lecture {lecture.id} ({lecture.class_year}-{lecture.division}): "
        f"{len(students)} students, {len(marks)} marked since {since.date() if since else 'ever'}, "
        f"status {status}"
    )
    return RosterResult(lecture=lecture, status=status, students=students, marks=marks)
