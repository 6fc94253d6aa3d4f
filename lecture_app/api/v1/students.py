import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from lecture_app.dependencies import get_db
from lecture_app.crud.student import get_students, get_student_by_id, create_student
from lecture_app.schemas.student_schema import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse
)

# Setup logger
logger = logging.getLogger(__name__)

str_router = APIRouter(prefix="/students", tags=["students"])


@str_router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student_endpoint(
        student: StudentCreate,
        db: AsyncSession = Depends(get_db)
):
    try:
        db_student = await create_student(db, student)
        return StudentResponse.model_validate(db_student)

    except SQLAlchemyError as e:
        logger.error(f"Database error creating student: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )


@str_router.get("", response_model=PaginatedStudentResponse)
async def get_student_directory(
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(10, ge=1, le=100, description="Items per page"),
        class_year: Optional[str] = Query(None, description="Filter by class/year"),
        division: Optional[str] = Query(None, description="Filter by division"),
        department: Optional[str] = Query(None, description="Filter by department"),
        search: Optional[str] = Query(None, description="Search by name, roll number or email"),
        db: AsyncSession = Depends(get_db)
):
    """
    Student directory.

    - **page**: Page number (default: 1)
    - **limit**: Items per page (default: 10, max: 100)
    - **class_year** / **division** / **department**: exact-match filters
    - **search**: Search in name, roll number or email
    """
    try:
        logger.info(
            f"Fetching students page: {page}, limit: {limit}, class: {class_year}, "
            f"division: {division}, department: {department}, search: {search}"
        )

        skip = (page - 1) * limit
        filters = StudentFilter(
            class_year=class_year,
            division=division,
            department=department,
            search=search
        )

        students, total = await get_students(db, skip=skip, limit=limit, filters=filters)

        total_pages = (total + limit - 1) // limit
        logger.info(f"Returned {len(students)} students, total: {total}, pages: {total_pages}")

        return PaginatedStudentResponse(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            students=[StudentResponse.model_validate(s) for s in students]
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error fetching students: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
    except Exception as e:
        logger.error(f"Unexpected error fetching students: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred"
        )


@str_router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
        student_id: int,
        db: AsyncSession = Depends(get_db)
):
    try:
        student = await get_student_by_id(db, student_id)
        if not student:
            logger.warning(f"Student not found with id: {student_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found"
            )
        return StudentResponse.model_validate(student)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching student {student_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable"
        )
