"""
FarmLog client facade

Construct one ``FarmLogClient`` per process and hand it to whatever drives
the UI. Mutations go through the local store first; when a session is
active they are mirrored to the API. Mirroring is best effort: a failure is
logged and the local change stands.
"""

from datetime import date
from typing import Any, List, Mapping, Optional

from farmlog.client.api_client import TaskApiClient
from farmlog.client.config import ClientSettings, get_client_settings
from farmlog.client.local_store import LocalStore
from farmlog.client.session import AuthSession
from farmlog.client.storage import FileStorage, KeyValueStorage, RedisStorage
from farmlog.errors import FarmLogError
from farmlog.models.task_record import TaskRecordBase
from farmlog.utils.logger import get_logger
from farmlog.views import task_views

logger = get_logger(__name__)


def build_storage(settings: ClientSettings) -> KeyValueStorage:
    if settings.STORAGE_BACKEND == "redis":
        return RedisStorage(settings.REDIS_URL, timeout=settings.REDIS_TIMEOUT)
    if settings.STORAGE_BACKEND == "file":
        return FileStorage(settings.STORAGE_DIR)
    raise ValueError(f"Unknown storage backend '{settings.STORAGE_BACKEND}'")


class FarmLogClient:
    """Local-first task logging with optional mirroring to the API"""

    def __init__(
        self,
        store: LocalStore,
        session: AuthSession,
        api: TaskApiClient,
        write_timeout: float = 5.0
    ):
        self.store = store
        self.session = session
        self.api = api
        self.write_timeout = write_timeout

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None) -> "FarmLogClient":
        settings = settings or get_client_settings()
        storage = build_storage(settings)
        api = TaskApiClient(settings.API_URL, timeout=settings.REQUEST_TIMEOUT)
        return cls(
            store=LocalStore(storage),
            session=AuthSession(storage, api),
            api=api,
            write_timeout=settings.WRITE_TIMEOUT
        )

    def start(self) -> None:
        """Restore the stored session and load cached tasks"""
        self.session.check_auth()
        self.store.load()

    def close(self) -> None:
        if not self.store.flush(self.write_timeout):
            logger.warning("Some task writes did not finish before shutdown")
        self.store.close()

    # ---- session ----

    def login(self, username: str, password: str) -> None:
        self.session.login(username, password)

    def signup(self, username: str, password: str) -> None:
        self.session.signup(username, password)

    def logout(self) -> None:
        """End the session and drop the cached tasks"""
        self.session.logout()
        self.store.clear()

    # ---- mutations ----

    def log_task(self, candidate: Mapping[str, Any], today: Optional[date] = None) -> TaskRecordBase:
        """Record a task locally, then mirror it when logged in"""
        record = self.store.add(candidate, today=today)
        if self.session.is_authenticated:
            try:
                remote = self.api.create_task(record)
                logger.info(f"Mirrored task {record.id} as {remote.id}")
                # Later edits and deletes address the server copy by its id
                record = self.store.replace_id(record.id, remote.id)
            except FarmLogError as e:
                logger.warning(f"Could not mirror task {record.id}: {e}")
        return record

    def edit_task(self, task_id: str, patch: Mapping[str, Any]) -> TaskRecordBase:
        record = self.store.update(task_id, patch)
        if self.session.is_authenticated:
            try:
                self.api.update_task(task_id, patch)
            except FarmLogError as e:
                logger.warning(f"Could not mirror edit of task {task_id}: {e}")
        return record

    def delete_task(self, task_id: str) -> TaskRecordBase:
        record = self.store.remove(task_id)
        if self.session.is_authenticated:
            try:
                self.api.delete_task(task_id)
            except FarmLogError as e:
                logger.warning(f"Could not mirror delete of task {task_id}: {e}")
        return record

    def sync(self) -> List[TaskRecordBase]:
        """
        Replace the cache with the server's copy (last write wins)

        Records already cached keep their logging order, so recent_tasks
        still shows what was logged last on this device.

        Raises:
            AuthError: not logged in or the token was rejected
            TransportError: the API could not be reached
        """
        records = self.api.list_tasks()
        position = {task.id: index for index, task in enumerate(self.store.tasks)}
        # Cached records keep the order they were logged in; records new to
        # this device follow them, oldest date first
        ordered = sorted(reversed(records), key=lambda r: position.get(r.id, len(position)))
        self.store.replace_all(ordered)
        logger.info(f"Synchronized {len(records)} tasks")
        return self.store.tasks

    # ---- views ----

    def todays_tasks(self, today: Optional[date] = None) -> List[TaskRecordBase]:
        return self.store.todays_tasks(today)

    def recent_tasks(self, limit: int = 3) -> List[TaskRecordBase]:
        return task_views.recent_tasks(self.store.tasks, limit)

    def history(self, selector: Optional[str] = None) -> List[task_views.DateGroup]:
        return task_views.history(self.store.tasks, selector)
