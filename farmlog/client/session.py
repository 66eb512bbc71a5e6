"""
Client-side session: the token and username kept between runs
"""

from typing import Optional

from farmlog.client.api_client import TaskApiClient
from farmlog.client.storage import KeyValueStorage
from farmlog.errors import StorageError
from farmlog.utils.logger import get_logger

logger = get_logger(__name__)

AUTH_TOKEN_KEY = "@farm_auth_token"
AUTH_USER_KEY = "@farm_auth_user"


class AuthSession:
    """
    Holds the authenticated identity for the client

    Credential errors from the API (AuthError, ConflictError,
    ValidationError, TransportError) propagate to the caller unchanged.
    """

    def __init__(self, storage: KeyValueStorage, api: TaskApiClient):
        self.storage = storage
        self.api = api
        self.user: Optional[str] = None
        self.token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.user)

    def check_auth(self) -> bool:
        """Restore a stored session, if there is one"""
        try:
            token = self.storage.get_item(AUTH_TOKEN_KEY)
            user = self.storage.get_item(AUTH_USER_KEY)
        except StorageError as e:
            logger.error(f"Could not read stored session: {e}")
            token = user = None

        if token and user:
            self._set(token, user)
        else:
            self._set(None, None)
        return self.is_authenticated

    def login(self, username: str, password: str) -> None:
        token = self.api.login(username, password)
        self._set(token, username)
        try:
            self.storage.set_item(AUTH_TOKEN_KEY, token)
            self.storage.set_item(AUTH_USER_KEY, username)
        except StorageError as e:
            # Still logged in for this run
            logger.error(f"Could not store session: {e}")
        logger.info(f"Logged in as {username}")

    def signup(self, username: str, password: str) -> None:
        """Register, then log straight in"""
        self.api.register(username, password)
        self.login(username, password)

    def logout(self) -> None:
        for key in (AUTH_TOKEN_KEY, AUTH_USER_KEY):
            try:
                self.storage.remove_item(key)
            except StorageError as e:
                logger.error(f"Could not clear {key}: {e}")
        self._set(None, None)

    def _set(self, token: Optional[str], user: Optional[str]) -> None:
        self.token = token
        self.user = user
        self.api.token = token
