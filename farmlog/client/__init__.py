"""
FarmLog client: local task cache, session and API access
"""

from .storage import KeyValueStorage, FileStorage, RedisStorage
from .local_store import LocalStore, TaskIdFactory, TASKS_STORAGE_KEY
from .api_client import TaskApiClient
from .session import AuthSession, AUTH_TOKEN_KEY, AUTH_USER_KEY
from .service import FarmLogClient

__all__ = [
    'KeyValueStorage',
    'FileStorage',
    'RedisStorage',
    'LocalStore',
    'TaskIdFactory',
    'TASKS_STORAGE_KEY',
    'TaskApiClient',
    'AuthSession',
    'AUTH_TOKEN_KEY',
    'AUTH_USER_KEY',
    'FarmLogClient'
]
