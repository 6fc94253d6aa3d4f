import logging
from typing import Optional, Dict, Any

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Request to the attendance API failed (network error or non-2xx)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AttendanceApi:
    """Thin HTTP client for the attendance endpoints"""

    def __init__(
            self,
            base_url: str,
            token: Optional[str] = None,
            timeout: float = 20,
            session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
            r.raise_for_status()
            return r.json()
        except requests.HTTPError as e:
            code = e.response.status_code if e.response is not None else None
            logger.error("%s %s failed: %s", method, url, code)
            raise ApiError(f"{method} {path} failed with status {code}", status_code=code) from e
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(f"{method} {path} failed: {e}") from e

    def get_roster(self, lecture_id: int, class_year: str) -> Dict[str, Any]:
        return self._request("GET", f"/attendance/roster/{lecture_id}/{class_year}")

    def get_forecast(self, **params) -> Dict[str, Any]:
        return self._request("GET", "/ai/forecast", params=params or None)

    def mark(self, lecture_id: int, student_id: int, status: str, user_id: Optional[int]) -> Dict[str, Any]:
        payload = {
            "lecture_id": lecture_id,
            "student_id": student_id,
            "status": status,
            "user_id": user_id,
        }
        return self._request("POST", "/attendance/mark", json=payload)

    def mark_all(self, lecture_id: int, class_year: str, user_id: Optional[int]) -> Dict[str, Any]:
        payload = {"lecture_id": lecture_id, "class_year": class_year, "user_id": user_id}
        return self._request("POST", "/attendance/mark-all", json=payload)
