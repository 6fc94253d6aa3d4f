class LectureAppError(Exception):
    """Base class for domain errors raised by services"""
    pass


class LectureNotFoundError(LectureAppError):
    def __init__(self, lecture_id: int):
        self.lecture_id = lecture_id
        super().__init__(f"Lecture {lecture_id} not found")


class StudentNotFoundError(LectureAppError):
    def __init__(self, student_id: int):
        self.student_id = student_id
        super().__init__(f"Student {student_id} not found")


class ClassMismatchError(LectureAppError):
    """Requested class/year does not belong to the lecture"""

    def __init__(self, lecture_id: int, requested: str, actual: str):
        self.lecture_id = lecture_id
        self.requested = requested
        self.actual = actual
        super().__init__(
            f"Class '{requested}' does not match lecture {lecture_id} (class '{actual}')"
        )


class ForecastServiceError(LectureAppError):
    """Raised when the risk forecast cannot be computed"""
    pass
