import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from tasksync.models.sync import SyncDirection, SyncResult
from tasksync.services.scheduler import SyncScheduler


@pytest.fixture
def reconciler():
    reconciler = MagicMock()
    reconciler.reconcile.return_value = SyncResult(success=1, created=1)
    return reconciler


@pytest.fixture
def notion(mocker):
    notion = MagicMock()
    mocker.patch("tasksync.runtime.get_client", return_value=notion)
    return notion


@pytest.fixture
def client(mocker, store, reconciler):
    mocker.patch("tasksync.runtime.get_store", return_value=store)
    mocker.patch("tasksync.runtime.get_scheduler", return_value=SyncScheduler(store, reconciler))
    from tasksync.main import api
    return TestClient(api)


class TestStatus:
    def test_disconnected(self, client):
        data = client.get("/api/sync/status").json()
        assert data["connected"] is False
        assert data["state"] == {
            "last_sync_time": None, "direction": "none", "is_syncing": False, "error_count": 0,
        }
        assert data["interval_seconds"] == 30.0

    def test_api_status(self, client, store):
        store.add_task("a")
        data = client.get("/api/status").json()
        assert data["notion"]["connected"] is False
        assert data["tasks"] == 1


class TestSyncNow:
    def test_not_connected(self, client, reconciler):
        data = client.post("/api/sync/now").json()
        assert data["ran"] is False
        assert "not connected" in data["message"]
        reconciler.reconcile.assert_not_called()

    def test_runs_sync(self, client, store, reconciler):
        store.set_credentials("key", "db")
        data = client.post("/api/sync/now").json()
        assert data["ran"] is True
        assert data["result"]["created"] == 1
        assert data["message"] is None
        reconciler.reconcile.assert_called_once_with(SyncDirection.BIDIRECTIONAL)

        state = client.get("/api/sync/status").json()["state"]
        assert state["last_sync_time"] is not None
        assert state["direction"] == "bidirectional"

    def test_failure_summary(self, client, store, reconciler):
        store.set_credentials("key", "db")
        reconciler.reconcile.return_value = SyncResult(failed=2, errors=["Failed to push: a", "Failed to create: b"])
        data = client.post("/api/sync/now").json()
        assert data["ran"] is True
        assert data["message"] == "Sync finished with 2 error(s): Failed to push: a"

    def test_push_only(self, client, store, reconciler):
        store.set_credentials("key", "db")
        client.post("/api/sync/now?direction=toRemote")
        reconciler.reconcile.assert_called_once_with(SyncDirection.TO_REMOTE)

    def test_crashed_run(self, client, store, reconciler):
        store.set_credentials("key", "db")
        reconciler.reconcile.side_effect = RuntimeError("boom")
        data = client.post("/api/sync/now").json()
        assert data["ran"] is False
        assert client.get("/api/sync/status").json()["state"]["error_count"] == 1


class TestConnect:
    def test_successful_connect_keeps_credentials(self, client, store, notion):
        notion.test_connection.return_value = True
        resp = client.post("/api/sync/connect", json={"api_key": " secret ", "database_id": "db1"})
        assert resp.json()["connected"] is True
        creds = store.get_credentials()
        assert (creds.api_key, creds.database_id) == ("secret", "db1")

    def test_failed_connect_clears_credentials(self, client, store, notion):
        notion.test_connection.return_value = False
        resp = client.post("/api/sync/connect", json={"api_key": "bad", "database_id": "db1"})
        assert resp.json()["connected"] is False
        assert store.get_credentials() is None

    def test_test_endpoint(self, client, notion):
        notion.test_connection.return_value = False
        assert client.post("/api/sync/test").json()["connected"] is False

    def test_disconnect_keeps_links(self, client, store):
        store.set_credentials("key", "db")
        task = store.add_task("a")
        store.attach_remote_id(task.id, "R1")
        resp = client.delete("/api/sync/connect")
        assert resp.json()["connected"] is False
        assert not store.is_connected()
        assert store.get_task(task.id).remote_id == "R1"
