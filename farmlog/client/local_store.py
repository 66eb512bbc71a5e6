"""
Client-side task cache

The local store is the in-process view of the current user's task records.
Reads are served from memory. Every mutation is applied in memory first and
then written to durable storage on a background writer thread; a failed
write is logged and never rolls the in-memory state back.
"""

import itertools
import json
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from farmlog.client.storage import KeyValueStorage
from farmlog.errors import ConflictError, NotFoundError, StorageError
from farmlog.models.task_record import TaskRecordBase, parse_task_record
from farmlog.models.validation import apply_patch, validate_task_record
from farmlog.utils.logger import get_logger
from farmlog.views import task_views

logger = get_logger(__name__)

TASKS_STORAGE_KEY = "@farm_tasks"


class TaskIdFactory:
    """
    Millisecond timestamp plus a session-local counter

    The counter keeps ids distinct across calls landing in the same
    millisecond.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._counter = itertools.count()

    def __call__(self) -> str:
        return f"{int(self._clock() * 1000)}-{next(self._counter)}"


class LocalStore:
    """
    Cache of task records backed by a durable key-value snapshot

    Usage:
        store = LocalStore(FileStorage("~/.farmlog"))
        store.load()
        record = store.add({"type": "irrigation", "field": "A1"})
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = TASKS_STORAGE_KEY,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.storage = storage
        self.key = key
        self._id_factory = id_factory or TaskIdFactory()
        self._tasks: List[TaskRecordBase] = []
        self._ids = set()
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="farmlog-writer")
        self._pending: List[Future] = []
        self.loaded = False

    @property
    def tasks(self) -> List[TaskRecordBase]:
        """Records in insertion order"""
        return list(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- loading ----

    def load(self) -> List[TaskRecordBase]:
        """
        Read the durable snapshot into memory

        A missing or corrupt snapshot yields an empty list; this never raises.
        """
        try:
            raw = self.storage.get_item(self.key)
        except StorageError as e:
            logger.error(f"Error loading tasks: {e}")
            raw = None

        tasks = self._decode(raw) if raw else []
        self._tasks = tasks
        self._ids = {t.id for t in tasks}
        self.loaded = True
        logger.info(f"Loaded {len(tasks)} tasks from {self.key}")
        return self.tasks

    def _decode(self, raw: str) -> List[TaskRecordBase]:
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt task snapshot, starting empty: {e}")
            return []

        if not isinstance(entries, list):
            logger.error("Corrupt task snapshot (not a list), starting empty")
            return []

        tasks = []
        seen = set()
        for entry in entries:
            try:
                task = parse_task_record(entry)
            except PydanticValidationError as e:
                logger.warning(f"Skipping unreadable task entry: {e.error_count()} error(s)")
                continue
            if not task.id or task.id in seen:
                logger.warning(f"Skipping task entry with missing or duplicate id '{task.id}'")
                continue
            seen.add(task.id)
            tasks.append(task)
        return tasks

    # ---- mutations ----

    def add(self, candidate: Mapping[str, Any], today: Optional[date] = None) -> TaskRecordBase:
        """
        Validate, stamp with a fresh id, append, and persist

        Raises:
            ValidationError: candidate is not a valid task
        """
        record = validate_task_record(candidate, today=today)
        record = record.model_copy(update={"id": self._next_id()})

        self._tasks.append(record)
        self._ids.add(record.id)
        self._persist()
        logger.debug(f"Added task {record.id} ({record.type})")
        return record

    def update(self, task_id: str, patch: Mapping[str, Any]) -> TaskRecordBase:
        """Apply a partial edit to a cached record"""
        index = self._index_of(task_id)
        record = apply_patch(self._tasks[index], patch)
        self._tasks[index] = record
        self._persist()
        return record

    def remove(self, task_id: str) -> TaskRecordBase:
        """Delete a cached record"""
        index = self._index_of(task_id)
        record = self._tasks.pop(index)
        self._ids.discard(task_id)
        self._persist()
        return record

    def replace_id(self, old_id: str, new_id: str) -> TaskRecordBase:
        """Re-key a cached record, e.g. to the id the server assigned it"""
        index = self._index_of(old_id)
        if new_id != old_id and new_id in self._ids:
            raise ConflictError(f"Task id '{new_id}' already exists")
        record = self._tasks[index].model_copy(update={"id": new_id})
        self._tasks[index] = record
        self._ids.discard(old_id)
        self._ids.add(new_id)
        self._persist()
        return record

    def replace_all(self, records: Iterable[TaskRecordBase]) -> None:
        """Overwrite the cache, e.g. with records pulled from the server"""
        self._tasks = list(records)
        self._ids = {t.id for t in self._tasks}
        self._persist()

    def clear(self) -> None:
        """Session teardown: forget every record and drop the snapshot"""
        self._tasks = []
        self._ids = set()
        self._submit(self.storage.remove_item, self.key)

    def get(self, task_id: str) -> TaskRecordBase:
        return self._tasks[self._index_of(task_id)]

    def _index_of(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise NotFoundError("Task not found")

    def _next_id(self) -> str:
        task_id = self._id_factory()
        while task_id in self._ids:
            task_id = self._id_factory()
        return task_id

    # ---- durable writes ----

    def _persist(self) -> None:
        # Serialize on the caller's thread so the snapshot matches this mutation
        payload = json.dumps([t.to_dict() for t in self._tasks])
        self._submit(self.storage.set_item, self.key, payload)

    def _submit(self, fn: Callable, *args: Any) -> None:
        self._pending = [f for f in self._pending if not f.done()]
        future = self._writer.submit(fn, *args)
        future.add_done_callback(self._on_write_done)
        self._pending.append(future)

    @staticmethod
    def _on_write_done(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Error saving tasks: {exc}")

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight writes

        Returns:
            True if every pending write finished within the timeout
        """
        if not self._pending:
            return True
        _, not_done = wait(self._pending, timeout=timeout)
        self._pending = list(not_done)
        return not not_done

    def close(self, timeout: Optional[float] = None) -> None:
        self.flush(timeout)
        self._writer.shutdown(wait=False)

    # ---- queries ----

    def todays_tasks(self, today: Optional[date] = None) -> List[TaskRecordBase]:
        return task_views.todays_tasks(self._tasks, today)

    def by_date(self, day: str) -> List[TaskRecordBase]:
        return task_views.filter_by_date(self._tasks, day)

    def by_type(self, task_type: Optional[str]) -> List[TaskRecordBase]:
        return task_views.filter_by_type(self._tasks, task_type)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Records in wire form"""
        return [t.to_dict() for t in self._tasks]
