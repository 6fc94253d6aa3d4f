"""
Client-side state for the attendance screen of one lecture.

Marks are applied locally first and sent afterwards. While a request is in
flight the previous status is kept as the tentative entry for that student;
the change is confirmed on success and reverted on failure.
"""
import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Any

from lecture_app.client.api import ApiError
from lecture_app.core.enums import RosterStatus

logger = logging.getLogger(__name__)

DEFAULT_LOADING_TIMEOUT = 8.0


@dataclass
class Notification:
    level: str
    message: str


class AttendanceView:

    def __init__(
            self,
            api,
            lecture_id: int,
            class_year: str,
            user_id: Optional[int] = None,
            loading_timeout: float = DEFAULT_LOADING_TIMEOUT,
            on_notify: Optional[Callable[[Notification], None]] = None
    ):
        self.api = api
        self.lecture_id = lecture_id
        self.class_year = class_year
        self.user_id = user_id
        self.loading_timeout = loading_timeout
        self.on_notify = on_notify

        self.roster: List[Dict[str, Any]] = []
        self.lecture: Dict[str, Any] = {}
        self.predictions: Dict[int, Dict[str, Any]] = {}
        self.notifications: List[Notification] = []
        # student_id -> status before an unconfirmed mark
        self.tentative: Dict[int, str] = {}

        self._loading = False
        self._lock = threading.Lock()

    @property
    def loading(self) -> bool:
        return self._loading

    def _notify(self, level: str, message: str):
        note = Notification(level, message)
        self.notifications.append(note)
        if self.on_notify:
            self.on_notify(note)

    def _force_stop_loading(self):
        with self._lock:
            if not self._loading:
                return
            self._loading = False
        logger.warning(f"Attendance: loading lecture {self.lecture_id} timed out")
        self._notify("error", "Loading timed out. Please try refreshing.")

    def load(self) -> bool:
        """
        Fetch roster and forecast. The forecast is optional: if it fails the
        roster is shown without risk annotations. A safety timer clears the
        loading flag after ``loading_timeout`` seconds without cancelling
        the request.
        """
        with self._lock:
            self._loading = True
        timer = threading.Timer(self.loading_timeout, self._force_stop_loading)
        timer.daemon = True
        timer.start()

        try:
            try:
                data = self.api.get_roster(self.lecture_id, self.class_year)
            except ApiError as e:
                logger.error(f"Attendance: roster load failed for lecture {self.lecture_id}: {e}")
                self._notify("error", "Failed to load attendance data")
                return False

            try:
                forecast = self.api.get_forecast()
            except ApiError as e:
                logger.warning(f"Attendance: forecast failed, continuing without it: {e}")
                forecast = {"predictions": []}

            self.roster = [
                dict(entry, status=entry.get("status") or RosterStatus.PENDING.value)
                for entry in data.get("roster", [])
            ]
            self.lecture = data.get("lecture") or {}
            self.predictions = {
                p["student"]["id"]: p["risk"]
                for p in forecast.get("predictions") or []
            }
            self.tentative.clear()
            return True
        finally:
            timer.cancel()
            with self._lock:
                self._loading = False

    def _entry(self, student_id: int) -> Optional[Dict[str, Any]]:
        for entry in self.roster:
            if entry["id"] == student_id:
                return entry
        return None

    def mark(self, student_id: int, status: str) -> bool:
        entry = self._entry(student_id)
        if entry is None:
            raise KeyError(f"Student {student_id} is not on this roster")

        previous = self.tentative.get(student_id, entry["status"])
        self.tentative[student_id] = previous
        entry["status"] = status

        try:
            self.api.mark(self.lecture_id, student_id, status, self.user_id)
        except ApiError as e:
            logger.error(f"Failed to mark student {student_id}: {e}")
            entry["status"] = previous
            self._notify("error", f"Could not save {entry.get('name', student_id)}, status restored")
            return False
        finally:
            self.tentative.pop(student_id, None)

        return True

    def mark_all_present(self) -> bool:
        targets = {RosterStatus.PENDING.value, RosterStatus.ABSENT.value}
        changed = {}
        for entry in self.roster:
            if entry["status"] in targets:
                changed[entry["id"]] = entry["status"]
                entry["status"] = RosterStatus.PRESENT.value
        self.tentative.update(changed)

        try:
            self.api.mark_all(self.lecture_id, self.class_year, self.user_id)
        except ApiError as e:
            logger.error(f"Mark-all failed for lecture {self.lecture_id}: {e}")
            for entry in self.roster:
                if entry["id"] in changed:
                    entry["status"] = changed[entry["id"]]
            self._notify("error", "Failed to mark all present")
            return False
        finally:
            for student_id in changed:
                self.tentative.pop(student_id, None)

        return True

    def risk_for(self, student_id: int) -> Optional[Dict[str, Any]]:
        return self.predictions.get(student_id)

    def stats(self) -> Dict[str, int]:
        counts = Counter(entry["status"] for entry in self.roster)
        return {status.value: counts.get(status.value, 0) for status in RosterStatus}
