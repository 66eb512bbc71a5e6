"""
Durable key-value storage for the FarmLog client

Backends hold string values under string keys. The client keeps three keys:
the task snapshot and the session token/username.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import redis

from farmlog.errors import StorageError
from farmlog.utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """String key-value store that survives process restarts"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent"""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one"""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key; absent keys are ignored"""


class FileStorage(KeyValueStorage):
    """
    One file per key under a directory

    Writes go to a temporary file that is renamed over the target, so a crash
    mid-write leaves the previous value intact.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageError(f"Could not write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not remove {key}: {e}") from e


class RedisStorage(KeyValueStorage):
    """
    Redis-backed storage with namespaced keys and bounded socket timeouts
    """

    def __init__(
        self,
        url: Optional[str] = None,
        namespace: str = "farmlog",
        timeout: float = 5.0,
        client: Optional[redis.Redis] = None
    ):
        """
        Args:
            url: Redis URL (default from env: REDIS_URL)
            namespace: Prefix for every key
            timeout: Connect and socket timeout in seconds
            client: Pre-built client (tests)
        """
        self.namespace = namespace
        if client is not None:
            self.client = client
        else:
            self.client = redis.Redis.from_url(
                url or os.getenv("REDIS_URL", "redis://localhost:6379/0"),
                decode_responses=True,
                socket_connect_timeout=timeout,
                socket_timeout=timeout
            )

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self.client.get(self._make_key(key))
        except (redis.RedisError, UnicodeDecodeError) as e:
            raise StorageError(f"Redis get error for {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            self.client.set(self._make_key(key), value)
            logger.debug(f"Stored: {self._make_key(key)}")
        except redis.RedisError as e:
            raise StorageError(f"Redis set error for {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self.client.delete(self._make_key(key))
        except redis.RedisError as e:
            raise StorageError(f"Redis delete error for {key}: {e}") from e
