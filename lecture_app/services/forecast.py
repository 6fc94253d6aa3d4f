import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.config import get_settings
from lecture_app.core.enums import AttendanceStatus, WEEKDAYS
from lecture_app.core.exceptions import ForecastServiceError
from lecture_app.crud.attendance import get_student_history
from lecture_app.crud.lecture import get_schedule
from lecture_app.crud.student import get_students_for_class
from lecture_app.models.lecture import Lecture
from lecture_app.models.student import Student

logger = logging.getLogger(__name__)

# (student_id, status, created_at, subject)
HistoryRow = Tuple[int, str, datetime, str]


@dataclass
class ForecastConfig:
    """Configuration for RiskForecastService"""
    risk_threshold: int = 70
    max_predictions: int = 20
    recent_window: int = 10
    subject_weight: float = 0.4
    day_weight: float = 0.25
    base_weight: float = 0.15
    recent_weight: float = 0.2


@dataclass
class RiskResult:
    """Risk of a student missing a given lecture"""
    riskScore: int
    reason: str
    details: Dict[str, float] = field(default_factory=dict)


def _absent_rate(rows: List[HistoryRow]) -> float:
    if not rows:
        return 0.0
    absent = sum(1 for row in rows if row[1] == AttendanceStatus.ABSENT.value)
    return absent / len(rows)


class RiskForecastService:
    """
    Predicts which students are likely to miss today's lectures from their
    attendance history (weighted absence rates by subject, weekday, overall
    and recent trend).
    """

    def __init__(self, config: Optional[ForecastConfig] = None):
        self.config = config or ForecastConfig()

    def score(self, history: List[HistoryRow], subject: str, day_of_week: str) -> RiskResult:
        """Risk for one student on one lecture; history must be oldest first"""
        if not history:
            return RiskResult(riskScore=0, reason="Insufficient Data")

        base_rate = _absent_rate(history)

        subject_rows = [row for row in history if row[3] == subject]
        subject_rate = _absent_rate(subject_rows) if subject_rows else base_rate

        day_rows = [row for row in history if WEEKDAYS[row[2].weekday()] == day_of_week]
        day_rate = _absent_rate(day_rows) if day_rows else base_rate

        recent_rate = _absent_rate(history[-self.config.recent_window:])

        weighted = (
            subject_rate * self.config.subject_weight +
            day_rate * self.config.day_weight +
            base_rate * self.config.base_weight +
            recent_rate * self.config.recent_weight
        )

        reason = "General Pattern"
        if recent_rate > 0.6:
            reason = "Recent declining trend"
        elif subject_rate > 0.5:
            reason = f"Frequently skips {subject}"
        elif day_rate > 0.5:
            reason = f"Often absent on {day_of_week}s"

        return RiskResult(
            riskScore=round(weighted * 100),
            reason=reason,
            details={
                "base": base_rate,
                "subject": subject_rate,
                "day": day_rate,
                "recent": recent_rate,
            }
        )

    async def forecast(
            self,
            db: AsyncSession,
            day_of_week: Optional[str] = None,
            class_year: Optional[str] = None,
            department: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        High-risk students for the lectures held on ``day_of_week`` (today by
        default), highest risk first, capped at ``max_predictions``.

        Raises:
            ForecastServiceError: history could not be loaded
        """
        now = now or datetime.now()
        day = day_of_week or WEEKDAYS[now.weekday()]

        try:
            lectures = await get_schedule(db, day_of_week=day)
            if class_year:
                lectures = [l for l in lectures if l.class_year == class_year]
            if not lectures:
                logger.info(f"No lectures on {day}, empty forecast")
                return []

            class_students: Dict[Tuple[str, Optional[str]], List[Student]] = {}
            for lecture in lectures:
                key = (lecture.class_year, lecture.division)
                if key not in class_students:
                    students = await get_students_for_class(db, lecture.class_year, lecture.division)
                    if department:
                        students = [s for s in students if s.department == department]
                    class_students[key] = students

            student_ids = {s.id for students in class_students.values() for s in students}
            history_by_student: Dict[int, List[HistoryRow]] = defaultdict(list)
            for row in await get_student_history(db, student_ids):
                history_by_student[row[0]].append(row)

        except SQLAlchemyError as e:
            logger.error(f"Risk forecast failed for {day}: {str(e)}", exc_info=True)
            raise ForecastServiceError(f"Risk forecast failed: {str(e)}") from e

        predictions = []
        for lecture in lectures:
            for student in class_students[(lecture.class_year, lecture.division)]:
                risk = self.score(history_by_student.get(student.id, []), lecture.subject, day)
                if risk.riskScore > self.config.risk_threshold:
                    predictions.append(self._prediction(student, lecture, risk))

        predictions.sort(key=lambda p: p["risk"]["riskScore"], reverse=True)
        logger.info(f"Risk forecast for {day}: {len(predictions)} students above {self.config.risk_threshold}")
        return predictions[:self.config.max_predictions]

    @staticmethod
    def _prediction(student: Student, lecture: Lecture, risk: RiskResult) -> Dict[str, Any]:
        return {
            "student": {
                "id": student.id,
                "name": student.name,
                "class_year": student.class_year,
                "division": student.division,
            },
            "lecture": {
                "id": lecture.id,
                "subject": lecture.subject,
                "start_time": lecture.start_time,
            },
            "risk": {
                "riskScore": risk.riskScore,
                "reason": risk.reason,
                "details": risk.details,
            },
        }


# Singleton instance
_forecast_service_instance = None


def get_forecast_service() -> RiskForecastService:
    """
    Get or create singleton RiskForecastService instance.

    Returns:
        RiskForecastService instance
    """
    global _forecast_service_instance

    if _forecast_service_instance is None:
        settings = get_settings()
        config = ForecastConfig(
            risk_threshold=settings.forecast_risk_threshold,
            max_predictions=settings.forecast_limit
        )
        _forecast_service_instance = RiskForecastService(config)
        logger.info(f"Risk forecast service created (threshold {config.risk_threshold})")

    return _forecast_service_instance
