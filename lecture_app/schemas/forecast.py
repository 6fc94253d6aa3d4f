from typing import Optional, List, Dict

from pydantic import BaseModel


class ForecastStudent(BaseModel):
    id: int
    name: str
    class_year: str
    division: Optional[str] = None


class ForecastLecture(BaseModel):
    id: int
    subject: str
    start_time: str


class RiskScore(BaseModel):
    riskScore: int
    reason: str
    details: Dict[str, float] = {}


class Prediction(BaseModel):
    student: ForecastStudent
    lecture: ForecastLecture
    risk: RiskScore


class ForecastResponse(BaseModel):
    success: bool = True
    predictions: List[Prediction]
