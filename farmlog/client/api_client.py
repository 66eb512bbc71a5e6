"""
HTTP client for the FarmLog REST API

Every call applies a bounded timeout and maps error responses back onto the
FarmLog error classes. Nothing is retried automatically.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import requests
from pydantic import ValidationError as PydanticValidationError

from farmlog.errors import (
    ERRORS_BY_CODE,
    AuthError,
    ConflictError,
    FarmLogError,
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)
from farmlog.models.task_record import TaskRecordBase, parse_task_record, parse_task_records
from farmlog.utils.logger import get_logger

logger = get_logger(__name__)

ERRORS_BY_STATUS = {
    400: ValidationError,
    401: AuthError,
    404: NotFoundError,
    409: ConflictError,
}


class TaskApiClient:
    """
    Client for the /api/auth and /api/tasks endpoints
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None
    ):
        """
        Args:
            base_url: API root, e.g. http://localhost:8000
            timeout: Request timeout in seconds
            session: HTTP session to send requests through
            token: Bearer token from a previous login
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token = token

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True
    ) -> Any:
        headers = {}
        if auth:
            if not self.token:
                raise AuthError("Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_for(response)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON") from e

    @staticmethod
    def _records(data: Any, many: bool = False):
        try:
            return parse_task_records(data) if many else parse_task_record(data)
        except PydanticValidationError as e:
            raise TransportError(f"Malformed task in response: {e.error_count()} error(s)") from e

    @staticmethod
    def _error_for(response) -> FarmLogError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("detail") or body.get("message") or f"HTTP {response.status_code}"
        error_cls = ERRORS_BY_CODE.get(body.get("error")) or ERRORS_BY_STATUS.get(response.status_code, StorageError)
        return error_cls(str(message))

    # ---- auth ----

    def register(self, username: str, password: str) -> None:
        self._request("POST", "/api/auth/register", json={"username": username, "password": password}, auth=False)

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for a token; the token is kept for later calls"""
        data = self._request("POST", "/api/auth/login", json={"username": username, "password": password}, auth=False)
        if not isinstance(data, dict) or not data.get("token"):
            raise TransportError("Login response did not include a token")
        self.token = data["token"]
        return self.token

    # ---- tasks ----

    def list_tasks(self, task_type: Optional[str] = None, day: Optional[str] = None) -> List[TaskRecordBase]:
        params = {}
        if task_type:
            params["type"] = task_type
        if day:
            params["date"] = day
        return self._records(self._request("GET", "/api/tasks", params=params or None), many=True)

    def get_task(self, task_id: str) -> TaskRecordBase:
        return self._records(self._request("GET", f"/api/tasks/{task_id}"))

    def create_task(self, record: Union[TaskRecordBase, Mapping[str, Any]]) -> TaskRecordBase:
        payload = record.to_dict() if isinstance(record, TaskRecordBase) else dict(record)
        payload.pop("id", None)
        payload.pop("owner", None)
        return self._records(self._request("POST", "/api/tasks", json=payload))

    def update_task(self, task_id: str, patch: Mapping[str, Any]) -> TaskRecordBase:
        return self._records(self._request("PUT", f"/api/tasks/{task_id}", json=dict(patch)))

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")
