import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.enums import AttendanceStatus, RosterStatus
from lecture_app.core.exceptions import LectureNotFoundError, StudentNotFoundError
from lecture_app.crud.attendance import get_attendance_since, upsert_mark, write_mark
from lecture_app.crud.lecture import get_lecture_by_id
from lecture_app.crud.student import get_student_by_id, get_students_for_class
from lecture_app.models.attendance import AttendanceRecord
from lecture_app.services.roster import load_lecture_for_class, marks_by_student
from lecture_app.services.status import attendance_window

logger = logging.getLogger(__name__)

# Roster statuses that mark-all turns into present
MARK_ALL_TARGETS = {RosterStatus.PENDING.value, RosterStatus.ABSENT.value}


@dataclass
class MarkAllResult:
    updated: int = 0
    unchanged: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.updated + self.unchanged + self.failed


async def mark_student(
        db: AsyncSession,
        lecture_id: int,
        student_id: int,
        status: AttendanceStatus,
        now: datetime,
        user_id: Optional[int] = None,
        note: Optional[str] = None
) -> AttendanceRecord:
    """
    Record one student's status on the current occurrence of a lecture.
    A second mark in the same week (or any time, for a dated lecture)
    overwrites the first. The lecture's stored status is not touched.
    """
    lecture = await get_lecture_by_id(db, lecture_id)
    if not lecture:
        raise LectureNotFoundError(lecture_id)

    student = await get_student_by_id(db, student_id)
    if not student:
        raise StudentNotFoundError(student_id)

    record = await upsert_mark(
        db,
        lecture_id=lecture.id,
        student_id=student.id,
        status=AttendanceStatus(status).value,
        since=attendance_window(lecture, now),
        now=now,
        user_id=user_id,
        note=note
    )
    logger.info(f"Marked student {student_id} {record.status} on lecture {lecture_id} (record {record.id})")
    return record


async def mark_all_present(
        db: AsyncSession,
        lecture_id: int,
        class_year: str,
        now: datetime,
        user_id: Optional[int] = None
) -> MarkAllResult:
    """
    Mark every pending or absent student of the lecture's class present.

    Present and late students keep their status. Each student is written in
    its own savepoint: a failure is logged and counted, and the marks of the
    other students are still committed.
    """
    lecture = await load_lecture_for_class(db, lecture_id, class_year)
    students = await get_students_for_class(db, lecture.class_year, lecture.division)

    since = attendance_window(lecture, now)
    marks = marks_by_student(await get_attendance_since(db, lecture.id, since))

    result = MarkAllResult()
    for student in students:
        current, _ = marks.get(student.id, (RosterStatus.PENDING.value, ""))
        if current not in MARK_ALL_TARGETS:
            result.unchanged += 1
            continue

        try:
            async with db.begin_nested():
                await write_mark(
                    db,
                    lecture_id=lecture.id,
                    student_id=student.id,
                    status=AttendanceStatus.PRESENT.value,
                    since=since,
                    now=now,
                    user_id=user_id
                )
            result.updated += 1
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to mark student {student.id} present on lecture {lecture.id}: {str(e)}",
                exc_info=True
            )
            result.failed += 1

    await db.commit()

    logger.info(
        f"Mark-all on lecture {lecture.id}: {result.updated} updated, "
        f"{result.unchanged} unchanged, {result.failed} failed"
    )
    return result
