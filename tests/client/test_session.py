"""
Tests for AuthSession and the FarmLogClient facade
"""

import pytest
from datetime import date
from unittest.mock import Mock

from farmlog.client.api_client import TaskApiClient
from farmlog.client.local_store import LocalStore
from farmlog.client.service import FarmLogClient
from farmlog.client.session import AUTH_TOKEN_KEY, AUTH_USER_KEY, AuthSession
from farmlog.client.storage import FileStorage
from farmlog.errors import AuthError, ConflictError, TransportError
from farmlog.models import validate_task_record


@pytest.fixture
def storage(tmp_path):
    return FileStorage(tmp_path)


@pytest.fixture
def api():
    api = Mock(spec=TaskApiClient)
    api.token = None
    api.login.return_value = "tok-1"
    return api


class TestAuthSession:
    """Test cases for AuthSession"""

    def test_login_persists_session(self, storage, api):
        session = AuthSession(storage, api)
        session.login("alice", "pw1")

        assert session.is_authenticated
        assert api.token == "tok-1"
        assert storage.get_item(AUTH_TOKEN_KEY) == "tok-1"
        assert storage.get_item(AUTH_USER_KEY) == "alice"

        restored = AuthSession(storage, Mock(spec=TaskApiClient))
        assert restored.check_auth()
        assert restored.user == "alice"
        assert restored.api.token == "tok-1"

    def test_failed_login_leaves_session_empty(self, storage, api):
        api.login.side_effect = AuthError("Invalid credentials")
        session = AuthSession(storage, api)

        with pytest.raises(AuthError):
            session.login("alice", "wrong")

        assert not session.is_authenticated
        assert storage.get_item(AUTH_TOKEN_KEY) is None

    def test_signup_registers_then_logs_in(self, storage, api):
        session = AuthSession(storage, api)
        session.signup("carol", "pw3")

        api.register.assert_called_once_with("carol", "pw3")
        api.login.assert_called_once_with("carol", "pw3")
        assert session.user == "carol"

    def test_signup_conflict_propagates(self, storage, api):
        api.register.side_effect = ConflictError("Username already exists")
        session = AuthSession(storage, api)

        with pytest.raises(ConflictError):
            session.signup("alice", "pw")
        api.login.assert_not_called()

    def test_logout_clears_keys(self, storage, api):
        session = AuthSession(storage, api)
        session.login("alice", "pw1")
        session.logout()

        assert not session.is_authenticated
        assert api.token is None
        assert storage.get_item(AUTH_TOKEN_KEY) is None
        assert storage.get_item(AUTH_USER_KEY) is None
        assert not AuthSession(storage, api).check_auth()


class TestFarmLogClient:
    """Test cases for the client facade"""

    @pytest.fixture
    def client(self, storage, api):
        client = FarmLogClient(LocalStore(storage), AuthSession(storage, api), api)
        client.start()
        yield client
        client.close()

    def test_log_task_offline(self, client, api):
        """Test tasks are logged locally without a session"""
        record = client.log_task({"type": "irrigation", "field": "A1"}, today=date(2024, 5, 1))

        assert client.todays_tasks(today=date(2024, 5, 1)) == [record]
        api.create_task.assert_not_called()

    def test_log_task_mirrors_when_logged_in(self, client, api):
        """Test the cached record takes the id the server assigned"""
        client.login("alice", "pw1")
        api.create_task.side_effect = lambda record: record.model_copy(update={"id": "server-1"})

        record = client.log_task({"type": "irrigation", "field": "A1"})

        sent = api.create_task.call_args[0][0]
        assert sent.id != "server-1"
        assert record.id == "server-1"
        assert [t.id for t in client.store.tasks] == ["server-1"]

    def test_edit_and_delete_mirror_with_server_id(self, client, api):
        """Test edits and deletes reach the server copy of a logged task"""
        client.login("alice", "pw1")
        api.create_task.side_effect = lambda record: record.model_copy(update={"id": "server-1"})
        record = client.log_task({"type": "plantation", "field": "A1"})

        client.edit_task(record.id, {"plantName": "Bean"})
        client.delete_task(record.id)

        api.update_task.assert_called_once_with("server-1", {"plantName": "Bean"})
        api.delete_task.assert_called_once_with("server-1")

    def test_mirror_failure_keeps_local_record(self, client, api):
        """Test an unreachable API does not undo the local write"""
        client.login("alice", "pw1")
        api.create_task.side_effect = TransportError("refused")

        record = client.log_task({"type": "plantation", "field": "A1"})
        assert client.store.tasks == [record]

    def test_edit_and_delete(self, client, api):
        record = client.log_task({"type": "plantation", "field": "A1"})

        assert client.edit_task(record.id, {"plantName": "Bean"}).plant_name == "Bean"
        client.delete_task(record.id)
        assert client.store.tasks == []

    def test_views(self, client):
        for day in ("2024-05-01", "2024-05-02", "2024-05-03", "2024-05-02"):
            client.log_task({"type": "irrigation", "field": "A1", "date": day})

        assert [r.date for r in client.recent_tasks()] == ["2024-05-02", "2024-05-03", "2024-05-02"]
        assert [day for day, _ in client.history("irrigation")] == ["2024-05-03", "2024-05-02", "2024-05-01"]
        assert client.history("plantation") == []

    def test_sync_replaces_cache(self, client, api):
        client.log_task({"type": "irrigation", "field": "A1", "date": "2024-05-01"})
        client.login("alice", "pw1")
        newer = validate_task_record({"type": "plantation", "field": "B", "date": "2024-05-03"}, record_id="s2")
        older = validate_task_record({"type": "plantation", "field": "B", "date": "2024-05-02"}, record_id="s1")
        api.list_tasks.return_value = [newer, older]

        synced = client.sync()

        assert [r.id for r in synced] == ["s1", "s2"]
        assert [r.id for r in client.recent_tasks()] == ["s2", "s1"]

    def test_sync_keeps_logging_order(self, client, api):
        """Test records logged here stay in logging order after a sync"""
        client.login("alice", "pw1")
        ids = iter(["s-late", "s-early"])
        api.create_task.side_effect = lambda record: record.model_copy(update={"id": next(ids)})
        late = client.log_task({"type": "plantation", "field": "A1", "date": "2024-05-03"})
        early = client.log_task({"type": "plantation", "field": "A1", "date": "2024-05-01"})
        other = validate_task_record({"type": "irrigation", "field": "B", "date": "2024-05-02"}, record_id="s-other")
        api.list_tasks.return_value = [late, other, early]

        client.sync()

        assert [r.id for r in client.store.tasks] == ["s-late", "s-early", "s-other"]
        assert client.recent_tasks(2)[1].id == "s-early"

    def test_logout_drops_cache(self, client, storage):
        client.log_task({"type": "irrigation", "field": "A1"})
        client.login("alice", "pw1")
        client.logout()
        client.store.flush(timeout=5)

        assert client.store.tasks == []
        assert LocalStore(storage).load() == []
