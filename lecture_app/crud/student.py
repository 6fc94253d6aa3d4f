import logging
from typing import Optional, Tuple, List

from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lecture_app.models.student import Student
from lecture_app.schemas.student_schema import StudentCreate, StudentFilter

logger = logging.getLogger(__name__)


async def get_students(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 10,
        filters: Optional[StudentFilter] = None
) -> Tuple[List[Student], int]:
    """
    Student directory with optional class/division/department filters and search
    """
    query = select(Student)

    if filters:
        if filters.class_year:
            query = query.where(Student.class_year == filters.class_year)
        if filters.division:
            query = query.where(Student.division == filters.division)
        if filters.department:
            query = query.where(Student.department == filters.department)
        if filters.search:
            search_pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    Student.name.like(search_pattern),
                    Student.roll_number.like(search_pattern),
                    Student.email.like(search_pattern)
                )
            )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar()

    # Get paginated results
    query = query.order_by(Student.class_year, Student.division, Student.roll_number, Student.id).offset(skip).limit(limit)
    result = await db.execute(query)
    students = list(result.scalars().all())

    return students, total


async def get_students_for_class(
        db: AsyncSession,
        class_year: str,
        division: Optional[str] = None
) -> List[Student]:
    """
    Students enrolled in a class. When the lecture has a division only that
    division is returned; otherwise the whole class year.
    """
    try:
        query = select(Student).where(Student.class_year == class_year)
        if division:
            query = query.where(Student.division == division)
        query = query.order_by(Student.roll_number, Student.name, Student.id)

        logger.debug(f"Querying students for class {class_year} division {division}")
        result = await db.execute(query)
        return list(result.scalars().all())

    except SQLAlchemyError as e:
        logger.error(f"Database error querying students for {class_year}-{division}: {str(e)}", exc_info=True)
        raise


async def get_student_by_id(db: AsyncSession, student_id: int) -> Optional[Student]:
    result = await db.execute(
        select(Student).where(Student.id == student_id)
    )
    return result.scalar_one_or_none()


async def create_student(db: AsyncSession, student: StudentCreate) -> Student:
    try:
        logger.info(f"Creating student {student.name} in {student.class_year}-{student.division}")

        db_student = Student(**student.model_dump())
        db.add(db_student)
        await db.commit()
        await db.refresh(db_student)
        return db_student

    except SQLAlchemyError as e:
        logger.error(f"Database error creating student {student.name}: {str(e)}", exc_info=True)
        await db.rollback()
        raise
