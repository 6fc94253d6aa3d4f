"""
Effective lecture status.

The ``lectures.status`` column is written once and never reset when a new
week starts, so a recurring Monday slot that was marked last week would stay
"completed" forever. The status shown to users is therefore derived at read
time from attendance rows:

* recurring lecture (has ``day_of_week``): ``completed`` iff at least one
  attendance row was created since the start of the current week, otherwise
  ``scheduled``; the stored column is ignored.
* one-off dated lecture: not week-scoped; ``completed`` once any attendance
  exists, otherwise whatever the stored column says (e.g. ``cancelled``).
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.enums import LectureStatus
from lecture_app.core.week import week_start
from lecture_app.crud.attendance import count_attendance_by_lecture
from lecture_app.models.lecture import Lecture

logger = logging.getLogger(__name__)


def attendance_window(lecture: Lecture, now: datetime) -> Optional[datetime]:
    """
    Earliest ``created_at`` that counts as the lecture's current attendance:
    the start of this week for recurring slots, no bound (None) for dated
    lectures.
    """
    if lecture.is_recurring:
        return week_start(now)
    return None


def effective_status(lecture: Lecture, week_count: int, total_count: int = 0) -> str:
    if lecture.is_recurring:
        if week_count > 0:
            return LectureStatus.COMPLETED.value
        return LectureStatus.SCHEDULED.value

    if total_count > 0:
        return LectureStatus.COMPLETED.value
    return lecture.status or LectureStatus.SCHEDULED.value


async def reconcile_lectures(
        db: AsyncSession,
        lectures: Iterable[Lecture],
        now: datetime
) -> Dict[int, str]:
    """Effective status for each lecture, keyed by lecture id"""
    lectures = list(lectures)
    if not lectures:
        return {}

    boundary = week_start(now)
    recurring_ids = [l.id for l in lectures if l.is_recurring]
    dated_ids = [l.id for l in lectures if not l.is_recurring]

    week_counts = await count_attendance_by_lecture(db, recurring_ids, since=boundary)
    total_counts = await count_attendance_by_lecture(db, dated_ids)

    statuses = {}
    for lecture in lectures:
        status = effective_status(
            lecture,
            week_counts.get(lecture.id, 0),
            total_counts.get(lecture.id, 0)
        )
        if status != lecture.status:
            logger.debug(f"Lecture {lecture.id}: stored status '{lecture.status}' displayed as '{status}'")
        statuses[lecture.id] = status

    return statuses


async def lecture_status(db: AsyncSession, lecture: Lecture, now: datetime) -> str:
    statuses = await reconcile_lectures(db, [lecture], now)
    return statuses[lecture.id]
