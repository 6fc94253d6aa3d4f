import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.core.enums import WEEKDAYS
from lecture_app.core.exceptions import ForecastServiceError
from lecture_app.dependencies import get_db, get_now
from lecture_app.schemas.forecast import ForecastResponse
from lecture_app.services.forecast import get_forecast_service

logger = logging.getLogger(__name__)
ai_router = APIRouter(prefix="/ai", tags=["ai"])


@ai_router.get("/forecast", response_model=ForecastResponse)
async def get_risk_forecast(
        day: Optional[str] = Query(None, description="Weekday name, defaults to today"),
        class_year: Optional[str] = Query(None),
        department: Optional[str] = Query(None),
        db: AsyncSession = Depends(get_db),
        now: datetime = Depends(get_now)
):
    """
    Students most likely to miss the given day's lectures.

    Roster screens treat this as optional data; a failure here must not
    stop them from rendering.
    """
    day_of_week = None
    if day:
        day_of_week = day.strip().capitalize()
        if day_of_week not in WEEKDAYS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"day must be one of {', '.join(WEEKDAYS)}"
            )

    try:
        service = get_forecast_service()
        predictions = await service.forecast(
            db,
            day_of_week=day_of_week,
            class_year=class_year,
            department=department,
            now=now
        )
        return ForecastResponse(predictions=predictions)

    except ForecastServiceError as e:
        logger.error(f"Risk forecast error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Risk forecast temporarily unavailable"
        )
