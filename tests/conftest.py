import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from tasksync.models.notion import RemotePage
from tasksync.models.tasks import Task
from tasksync.services.notion import NotionClient
from tasksync.services.store import TaskStore


# --- Canned API responses ---

NOTION_PAGE = {
    "object": "page",
    "id": "page-1",
    "last_edited_time": "2025-01-02T10:00:00.000Z",
    "archived": False,
    "properties": {
        "Name": {
            "id": "title",
            "type": "title",
            "title": [{"type": "text", "text": {"content": "Buy milk"}, "plain_text": "Buy milk"}],
        },
        "Status": {"id": "s1", "type": "status", "status": {"name": "Not started"}},
        "Folder": {"id": "f1", "type": "select", "select": {"name": "Important"}},
        "Due Date": {"id": "d1", "type": "date", "date": {"start": "2025-01-31", "end": None}},
    },
}

NOTION_PAGE_DONE = {
    "object": "page",
    "id": "page-2",
    "last_edited_time": "2025-01-03T08:30:00.000Z",
    "properties": {
        "Name": {"type": "title", "title": [{"plain_text": "Call mom"}]},
        "Status": {"type": "status", "status": {"name": "Done"}},
        "Folder": {"type": "select", "select": {"name": "Inbox"}},
        "Due Date": {"type": "date", "date": None},
    },
}

NOTION_QUERY_RESPONSE = {
    "object": "list",
    "results": [NOTION_PAGE, NOTION_PAGE_DONE],
    "has_more": False,
    "next_cursor": None,
}

NOTION_CREATE_RESPONSE = {"object": "page", "id": "new-page-123"}

T0 = "2025-01-01T00:00:00.000Z"
T1 = "2025-01-02T00:00:00.000Z"
T2 = "2025-01-03T00:00:00.000Z"


def make_response(status_code: int = 200, json_data: dict | None = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else {}
    resp.text = text
    return resp


def make_task(**overrides) -> Task:
    fields = {"id": "task-1", "name": "Buy milk", "folder": "Inbox", "last_modified": T0}
    fields.update(overrides)
    return Task(**fields)


def make_page(**overrides) -> RemotePage:
    fields = {"id": "R1", "name": "Buy milk", "completed": False, "folder": "Inbox", "last_modified": T0}
    fields.update(overrides)
    return RemotePage(**fields)


class FakeNotion:
    """In-memory stand-in for NotionClient, keyed by page id."""

    def __init__(self, pages: list[RemotePage] | None = None):
        self.pages: dict[str, RemotePage] = {p.id: p for p in pages or []}
        self.created: list[Task] = []
        self.updated: list[Task] = []
        self.fail_create = False
        self.fail_update = False
        self.query_error: Exception | None = None
        self._next = 0

    def query_all_records(self) -> list[RemotePage]:
        if self.query_error is not None:
            raise self.query_error
        return list(self.pages.values())

    def create_record(self, task: Task) -> str | None:
        if self.fail_create:
            return None
        self._next += 1
        page_id = f"new-{self._next}"
        self.created.append(task)
        self.pages[page_id] = RemotePage(
            id=page_id, name=task.name, completed=task.completed,
            folder=task.folder, due_date=task.due_date, last_modified=task.last_modified,
        )
        return page_id

    def update_record(self, task: Task) -> bool:
        if self.fail_update or not task.remote_id:
            return False
        self.updated.append(task)
        self.pages[task.remote_id] = RemotePage(
            id=task.remote_id, name=task.name, completed=task.completed,
            folder=task.folder, due_date=task.due_date, last_modified=task.last_modified,
        )
        return True


@pytest.fixture
def store(tmp_path):
    return TaskStore(tmp_path / "tasks.json")


@pytest.fixture
def connected_store(store):
    store.set_credentials("secret_abc", "db123")
    return store


@pytest.fixture
def mock_session():
    return MagicMock()


@pytest.fixture
def notion_client(connected_store, mock_session):
    """NotionClient over a mocked requests.Session."""
    return NotionClient(
        connected_store.get_credentials,
        session=mock_session,
        api_base="https://api.notion.com/v1",
        api_version="2022-06-28",
        timeout=5,
    )


@pytest.fixture
def api_client(mocker, store):
    """FastAPI TestClient wired to a temporary store."""
    mocker.patch("tasksync.runtime.get_store", return_value=store)
    scheduler = MagicMock()
    mocker.patch("tasksync.runtime.get_scheduler", return_value=scheduler)
    from tasksync.main import api
    return TestClient(api)
