from enum import Enum


class AttendanceStatus(str, Enum):
    """Statuses that can be written for a student"""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class RosterStatus(str, Enum):
    """Statuses shown on a roster; PENDING means no mark this week"""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    PENDING = "pending"


class LectureStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SUB_ASSIGNED = "sub_assigned"


WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
