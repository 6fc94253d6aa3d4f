import logging
from datetime import datetime
from typing import List, Optional, Dict, Iterable, Tuple

from sqlalchemy import func, and_, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lecture_app.models.attendance import AttendanceRecord
from lecture_app.models.lecture import Lecture

logger = logging.getLogger(__name__)


async def get_attendance_since(
        db: AsyncSession,
        lecture_id: int,
        since: Optional[datetime]
) -> List[AttendanceRecord]:
    """
    Attendance rows for a lecture created on/after ``since``, oldest first.
    ``since=None`` returns every row of the lecture.
    """
    query = select(AttendanceRecord).where(AttendanceRecord.lecture_id == lecture_id)
    if since is not None:
        query = query.where(AttendanceRecord.created_at >= since)
    query = query.order_by(AttendanceRecord.created_at, AttendanceRecord.id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_attendance_by_lecture(
        db: AsyncSession,
        lecture_ids: Iterable[int],
        since: Optional[datetime] = None
) -> Dict[int, int]:
    """
    Number of attendance rows per lecture, optionally only those created
    on/after ``since``. Lectures without rows are absent from the result.
    """
    ids = list(lecture_ids)
    if not ids:
        return {}

    query = select(AttendanceRecord.lecture_id, func.count(AttendanceRecord.id)).where(
        AttendanceRecord.lecture_id.in_(ids)
    )
    if since is not None:
        query = query.where(AttendanceRecord.created_at >= since)
    query = query.group_by(AttendanceRecord.lecture_id)

    result = await db.execute(query)
    return {lecture_id: count for lecture_id, count in result.all()}


async def get_record_since(
        db: AsyncSession,
        lecture_id: int,
        student_id: int,
        since: Optional[datetime]
) -> Optional[AttendanceRecord]:
    """Latest row for (lecture, student) created on/after ``since`` (any time if None)"""
    query = select(AttendanceRecord).where(
        and_(
            AttendanceRecord.lecture_id == lecture_id,
            AttendanceRecord.student_id == student_id
        )
    )
    if since is not None:
        query = query.where(AttendanceRecord.created_at >= since)
    query = query.order_by(AttendanceRecord.created_at.desc(), AttendanceRecord.id.desc()).limit(1)

    result = await db.execute(query)
    return result.scalars().first()


async def write_mark(
        db: AsyncSession,
        lecture_id: int,
        student_id: int,
        status: str,
        since: Optional[datetime],
        now: datetime,
        user_id: Optional[int] = None,
        note: Optional[str] = None
) -> AttendanceRecord:
    """
    Insert or update the current mark for one student without committing.
    Rows created before ``since`` are never touched; ``since=None`` means the
    latest row of any age is updated.
    """
    record = await get_record_since(db, lecture_id, student_id, since)

    if record:
        logger.debug(f"Updating attendance {record.id}: {record.status} -> {status}")
        record.status = status
        record.user_id = user_id
        if note is not None:
            record.note = note
        record.updated_at = now
    else:
        logger.debug(f"Inserting attendance for lecture {lecture_id} student {student_id}: {status}")
        record = AttendanceRecord(
            lecture_id=lecture_id,
            student_id=student_id,
            status=status,
            note=note,
            user_id=user_id,
            created_at=now
        )
        db.add(record)

    await db.flush()
    return record


async def upsert_mark(
        db: AsyncSession,
        lecture_id: int,
        student_id: int,
        status: str,
        since: Optional[datetime],
        now: datetime,
        user_id: Optional[int] = None,
        note: Optional[str] = None
) -> AttendanceRecord:
    """
    Record a student's status for this week's occurrence of a lecture.

    Args:
        db: Database session
        lecture_id: Lecture ID
        student_id: Student ID
        status: present / absent / late
        since: Start of the current week, or None for one-off lectures
        now: Timestamp written on new rows

    Returns:
        The inserted or updated AttendanceRecord
    """
    try:
        record = await write_mark(db, lecture_id, student_id, status, since, now, user_id=user_id, note=note)
        await db.commit()
        await db.refresh(record)
        return record

    except SQLAlchemyError as e:
        logger.error(
            f"Database error marking student {student_id} on lecture {lecture_id}: {str(e)}",
            exc_info=True
        )
        await db.rollback()
        raise


async def delete_lecture_attendance(db: AsyncSession, lecture_id: int) -> int:
    """Bulk reset: remove every attendance row of a lecture"""
    try:
        result = await db.execute(
            delete(AttendanceRecord).where(AttendanceRecord.lecture_id == lecture_id)
        )
        await db.commit()
        logger.info(f"Deleted {result.rowcount} attendance rows for lecture {lecture_id}")
        return result.rowcount

    except SQLAlchemyError as e:
        logger.error(f"Database error resetting attendance for lecture {lecture_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def get_student_history(
        db: AsyncSession,
        student_ids: Iterable[int]
) -> List[Tuple[int, str, datetime, str]]:
    """
    (student_id, status, created_at, subject) for every mark of the given
    students, oldest first.
    """
    ids = list(set(student_ids))
    if not ids:
        return []

    query = (
        select(
            AttendanceRecord.student_id,
            AttendanceRecord.status,
            AttendanceRecord.created_at,
            Lecture.subject
        )
        .join(Lecture, AttendanceRecord.lecture_id == Lecture.id)
        .where(AttendanceRecord.student_id.in_(ids))
        .order_by(AttendanceRecord.created_at, AttendanceRecord.id)
    )
    result = await db.execute(query)
    return [tuple(row) for row in result.all()]
