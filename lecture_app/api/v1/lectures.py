import logging
from datetime import datetime, date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.enums import WEEKDAYS
from lecture_app.crud.lecture import (
    get_lecture_by_id,
    list_lectures,
    get_schedule,
    create_lecture,
    update_lecture_status,
    assign_substitute,
    update_lecture_details
)
from lecture_app.dependencies import get_db, get_now
from lecture_app.models.lecture import Lecture
from lecture_app.schemas.lecture import (
    LectureCreate,
    LectureResponse,
    LectureListResponse,
    ScheduleResponse,
    LectureStatusUpdate,
    SubstituteAssignment,
    LectureDetailsUpdate
)
from lecture_app.services.status import reconcile_lectures, lecture_status

# Setup logger
logger = logging.getLogger(__name__)

lecture_router = APIRouter(prefix="/lectures", tags=["lectures"])


def convert_to_lecture_response(lecture: Lecture, effective: str) -> LectureResponse:
    """Convert SQLAlchemy model to Pydantic response model."""
    return LectureResponse(
        id=lecture.id,
        subject=lecture.subject,
        class_year=lecture.class_year,
        division=lecture.division,
        day_of_week=lecture.day_of_week,
        date=lecture.date,
        start_time=lecture.start_time,
        end_time=lecture.end_time,
        room=lecture.room,
        scheduled_teacher_id=lecture.scheduled_teacher_id,
        substitute_teacher_id=lecture.substitute_teacher_id,
        topic_covered=lecture.topic_covered,
        syllabus_topic_id=lecture.syllabus_topic_id,
        status=effective,
        stored_status=lecture.status,
        created_at=lecture.created_at
    )


@lecture_router.post("", response_model=LectureResponse, status_code=status.HTTP_201_CREATED)
async def create_lecture_endpoint(
        lecture: LectureCreate,
        db: AsyncSession = Depends(get_db)
):
    """
    Create a lecture.

    - **day_of_week**: weekday name for a recurring weekly slot
    - **date**: calendar date for a one-off lecture
    """
    try:
        new_lecture = await create_lecture(db, lecture)
        return convert_to_lecture_response(new_lecture, new_lecture.status)

    except SQLAlchemyError as e:
        logger.error(f"Database error creating lecture: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.get("", response_model=LectureListResponse)
async def get_lectures(
        teacher_id: Optional[int] = Query(None, description="Scheduled or substitute teacher"),
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """List lectures with their effective status for the current week"""
    try:
        lectures = await list_lectures(db, teacher_id=teacher_id)
        statuses = await reconcile_lectures(db, lectures, now)
        return LectureListResponse(
            lectures=[convert_to_lecture_response(l, statuses[l.id]) for l in lectures]
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error listing lectures: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.get("/schedule", response_model=ScheduleResponse)
async def get_master_schedule(
        day: Optional[str] = Query(None, description="Weekday name (recurring) or YYYY-MM-DD (one-off)"),
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Master schedule ordered by start time. Recurring lectures show
    `completed` only when attendance was taken this week.
    """
    day_of_week = None
    on_date = None
    if day:
        if day.capitalize() in WEEKDAYS:
            day_of_week = day.capitalize()
        else:
            try:
                on_date = date.fromisoformat(day)
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="day must be a weekday name or a YYYY-MM-DD date"
                )

    try:
        lectures = await get_schedule(db, day_of_week=day_of_week, on_date=on_date)
        statuses = await reconcile_lectures(db, lectures, now)

        logger.info(f"Schedule for {day or 'all days'}: {len(lectures)} lectures")
        return ScheduleResponse(
            schedule=[convert_to_lecture_response(l, statuses[l.id]) for l in lectures]
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error loading schedule for {day}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.post("/update-details")
async def update_details(
        details: LectureDetailsUpdate,
        db: AsyncSession = Depends(get_db)
):
    """Record the topic covered in a lecture"""
    try:
        lecture = await update_lecture_details(db, details.id, details.topic_covered, details.syllabus_topic_id)
        if not lecture:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lecture not found"
            )
        return {"success": True, "message": "Lecture updated"}

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error updating lecture {details.id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.get("/{lecture_id}", response_model=LectureResponse)
async def get_lecture(
        lecture_id: int,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    try:
        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            logger.warning(f"Lecture not found with ID: {lecture_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lecture not found"
            )

        effective = await lecture_status(db, lecture, now)
        return convert_to_lecture_response(lecture, effective)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.patch("/{lecture_id}/status", response_model=LectureResponse)
async def patch_lecture_status(
        lecture_id: int,
        update: LectureStatusUpdate,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Overwrite the stored status column. The response still carries the
    effective status, which may differ for recurring lectures.
    """
    try:
        lecture = await update_lecture_status(db, lecture_id, update.status)
        if not lecture:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lecture not found"
            )

        effective = await lecture_status(db, lecture, now)
        return convert_to_lecture_response(lecture, effective)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error patching lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@lecture_router.post("/{lecture_id}/substitute", response_model=LectureResponse)
async def assign_substitute_endpoint(
        lecture_id: int,
        assignment: SubstituteAssignment,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    try:
        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lecture not found"
            )
        if lecture.scheduled_teacher_id == assignment.substitute_teacher_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Substitute must differ from the scheduled teacher"
            )

        lecture = await assign_substitute(db, lecture_id, assignment.substitute_teacher_id)
        effective = await lecture_status(db, lecture, now)
        return convert_to_lecture_response(lecture, effective)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error assigning substitute to lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
