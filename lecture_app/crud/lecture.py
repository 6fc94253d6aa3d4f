import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lecture_app.core.enums import LectureStatus
from lecture_app.models.lecture import Lecture
from lecture_app.schemas.lecture import LectureCreate

logger = logging.getLogger(__name__)


async def get_lecture_by_id(db: AsyncSession, lecture_id: int) -> Optional[Lecture]:
    """
    Get lecture by ID.

    Args:
        db: Database session
        lecture_id: Lecture ID

    Returns:
        Lecture instance or None
    """
    try:
        logger.debug(f"Querying lecture by ID: {lecture_id}")
        result = await db.execute(select(Lecture).where(Lecture.id == lecture_id))
        lecture = result.scalar_one_or_none()

        if lecture:
            logger.debug(f"Found lecture {lecture_id}: {lecture.subject}")
        else:
            logger.debug(f"No lecture found with ID: {lecture_id}")

        return lecture

    except SQLAlchemyError as e:
        logger.error(f"Database error querying lecture {lecture_id}: {str(e)}", exc_info=True)
        raise


async def list_lectures(db: AsyncSession, teacher_id: Optional[int] = None) -> List[Lecture]:
    """Lectures taught or covered by a teacher, or all lectures"""
    query = select(Lecture)
    if teacher_id is not None:
        query = query.where(
            or_(
                Lecture.scheduled_teacher_id == teacher_id,
                Lecture.substitute_teacher_id == teacher_id
            )
        )
    query = query.order_by(Lecture.date, Lecture.day_of_week, Lecture.start_time, Lecture.id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_schedule(
        db: AsyncSession,
        day_of_week: Optional[str] = None,
        on_date: Optional[date] = None
) -> List[Lecture]:
    """
    Master schedule for a weekday (recurring slots) or a calendar date
    (one-off lectures), ordered by start time.
    """
    query = select(Lecture)
    if day_of_week:
        query = query.where(Lecture.day_of_week == day_of_week)
    elif on_date:
        query = query.where(Lecture.date == on_date)

    query = query.order_by(Lecture.start_time, Lecture.id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_lecture(db: AsyncSession, lecture: LectureCreate) -> Lecture:
    """
    Create a new lecture. The persisted status always starts as scheduled.

    Raises:
        SQLAlchemyError: If database operation fails
    """
    try:
        logger.info(f"Creating lecture {lecture.subject} for {lecture.class_year}")

        db_lecture = Lecture(**lecture.model_dump(), status=LectureStatus.SCHEDULED.value)
        db.add(db_lecture)
        await db.commit()
        await db.refresh(db_lecture)

        logger.info(f"Lecture created successfully (ID: {db_lecture.id})")
        return db_lecture

    except SQLAlchemyError as e:
        logger.error(f"Database error creating lecture {lecture.subject}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def update_lecture_status(
        db: AsyncSession,
        lecture_id: int,
        status: LectureStatus
) -> Optional[Lecture]:
    """
    Overwrite the persisted status hint.

    Returns:
        Updated Lecture instance or None
    """
    try:
        logger.info(f"Updating stored status for lecture {lecture_id} to {status.value}")

        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            logger.warning(f"Cannot update status: Lecture not found with ID: {lecture_id}")
            return None

        lecture.status = status.value
        await db.commit()
        await db.refresh(lecture)
        return lecture

    except SQLAlchemyError as e:
        logger.error(f"Database error updating status for lecture {lecture_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def assign_substitute(
        db: AsyncSession,
        lecture_id: int,
        substitute_teacher_id: int
) -> Optional[Lecture]:
    try:
        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            logger.warning(f"Cannot assign substitute: Lecture not found with ID: {lecture_id}")
            return None

        lecture.substitute_teacher_id = substitute_teacher_id
        lecture.status = LectureStatus.SUB_ASSIGNED.value
        await db.commit()
        await db.refresh(lecture)

        logger.info(f"Substitute {substitute_teacher_id} assigned to lecture {lecture_id}")
        return lecture

    except SQLAlchemyError as e:
        logger.error(f"Database error assigning substitute to lecture {lecture_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def update_lecture_details(
        db: AsyncSession,
        lecture_id: int,
        topic_covered: Optional[str],
        syllabus_topic_id: Optional[int]
) -> Optional[Lecture]:
    try:
        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            return None

        lecture.topic_covered = topic_covered
        lecture.syllabus_topic_id = syllabus_topic_id
        await db.commit()
        await db.refresh(lecture)
        return lecture

    except SQLAlchemyError as e:
        logger.error(f"Database error updating details for lecture {lecture_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise
