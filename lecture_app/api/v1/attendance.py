import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.exceptions import LectureNotFoundError, StudentNotFoundError, ClassMismatchError
from lecture_app.crud.attendance import delete_lecture_attendance
from lecture_app.crud.lecture import get_lecture_by_id
from lecture_app.dependencies import get_db, get_now
from lecture_app.schemas.attendance import (
    MarkRequest,
    MarkResponse,
    MarkAllRequest,
    MarkAllResponse,
    ResetResponse,
    RosterResponse
)
from lecture_app.services.marking import mark_student, mark_all_present
from lecture_app.services.roster import build_roster

# Setup logging
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("/roster/{lecture_id}/{class_year}", response_model=RosterResponse)
async def get_roster(
        lecture_id: int,
        class_year: str,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Roster of a lecture for the current week.

    - **lecture_id**: Lecture ID
    - **class_year**: Class/year label; must be the lecture's own class

    Students without a mark this week are reported as `pending`, and the
    lecture status is derived from this week's attendance.
    """
    try:
        logger.info(f"Roster request for lecture {lecture_id}, class {class_year}")

        result = await build_roster(db, lecture_id, class_year, now)

        return RosterResponse(roster=result.entries(), lecture=result.lecture_meta())

    except LectureNotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lecture not found"
        )
    except ClassMismatchError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching roster for lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected error fetching roster for lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch roster"
        )


@router.post("/mark", response_model=MarkResponse)
async def mark_attendance(
        request: MarkRequest,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Mark one student present, absent or late on this week's lecture.
    Marking the same student again this week overwrites the earlier mark.
    """
    try:
        logger.info(
            f"Mark request: lecture {request.lecture_id}, student {request.student_id}, "
            f"status {request.status.value}, by user {request.user_id}"
        )

        record = await mark_student(
            db,
            lecture_id=request.lecture_id,
            student_id=request.student_id,
            status=request.status,
            now=now,
            user_id=request.user_id,
            note=request.note
        )

        return MarkResponse(
            success=True,
            message="Attendance recorded",
            attendance_id=record.id,
            status=record.status
        )

    except (LectureNotFoundError, StudentNotFoundError) as e:
        logger.warning(f"Mark rejected: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error marking attendance: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected error marking attendance: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred"
        )


@router.post("/mark-all", response_model=MarkAllResponse)
async def mark_all(
        request: MarkAllRequest,
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Mark every pending or absent student of the lecture's class present.
    Students already present or late are left as they are.
    """
    try:
        logger.info(f"Mark-all request: lecture {request.lecture_id}, class {request.class_year}")

        result = await mark_all_present(
            db,
            lecture_id=request.lecture_id,
            class_year=request.class_year,
            now=now,
            user_id=request.user_id
        )

        return MarkAllResponse(
            success=result.failed == 0,
            message=f"{result.updated} students marked present",
            updated=result.updated,
            unchanged=result.unchanged,
            failed=result.failed,
            total=result.total
        )

    except LectureNotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lecture not found"
        )
    except ClassMismatchError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error in mark-all for lecture {request.lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected error in mark-all for lecture {request.lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark all present"
        )


@router.delete("/{lecture_id}", response_model=ResetResponse)
async def reset_attendance(
        lecture_id: int,
        db: AsyncSession = Depends(get_db)
):
    """Delete every attendance record of a lecture (bulk reset)"""
    try:
        lecture = await get_lecture_by_id(db, lecture_id)
        if not lecture:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lecture not found"
            )

        deleted = await delete_lecture_attendance(db, lecture_id)
        logger.info(f"Attendance reset for lecture {lecture_id}: {deleted} rows")
        return ResetResponse(success=True, deleted=deleted)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error resetting lecture {lecture_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@router.get("/health")
async def health_check():
    """Health check endpoint for the attendance service"""
    return {
        "status": "healthy",
        "service": "attendance-api",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0"
    }
