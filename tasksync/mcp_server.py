from fastmcp import FastMCP

from tasksync import runtime
from tasksync.exceptions import (
    AuthenticationError,
    IntegrationError,
    InvalidOperationError,
    NotFoundError,
    RateLimitError,
)
from tasksync.models.sync import SyncDirection
from tasksync.models.tasks import INBOX

mcp = FastMCP("Tasksync")

_TOOL_ERRORS = (AuthenticationError, IntegrationError, RateLimitError, NotFoundError, InvalidOperationError)


def _handle_mcp_error(e: Exception) -> dict:
    """Convert exceptions to agent-friendly error dicts."""
    if isinstance(e, AuthenticationError):
        return {"error": "auth_error", "message": str(e), "action": "Ask user to connect Notion via /api/sync/connect"}
    if isinstance(e, RateLimitError):
        return {"error": "rate_limit", "message": str(e), "action": "Wait a moment and retry"}
    if isinstance(e, IntegrationError):
        return {"error": "integration_error", "message": str(e)}
    if isinstance(e, NotFoundError):
        return {"error": "not_found", "message": str(e)}
    if isinstance(e, InvalidOperationError):
        return {"error": "invalid_operation", "message": str(e)}
    return {"error": "unknown_error", "message": str(e)}


# --- Task tools ---

@mcp.tool
def tasks_list(folder: str | None = None, include_completed: bool = True) -> dict:
    """List tasks, optionally only those in one folder (e.g. 'Inbox', 'Important', 'Completed').
    Set include_completed=false to hide finished tasks."""
    tasks = runtime.get_store().list_tasks(folder, include_completed=include_completed)
    return {"tasks": [t.model_dump() for t in tasks], "count": len(tasks)}


@mcp.tool
def tasks_upcoming() -> dict:
    """Incomplete tasks grouped by due date: 'Today', 'Tomorrow', later dates in order,
    then 'No Date'."""
    groups = runtime.get_store().upcoming()
    return {"groups": [g.model_dump() for g in groups], "count": sum(len(g.tasks) for g in groups)}


@mcp.tool
def task_add(name: str, folder: str = INBOX, due_date: str | None = None) -> dict:
    """Add a task. due_date is an ISO date like '2025-01-31'. Returns the created task."""
    task = runtime.get_store().add_task(name, folder, due_date)
    runtime.get_scheduler().request_sync()
    return task.model_dump()


@mcp.tool
def task_toggle(task_id: str) -> dict:
    """Mark a task done, or un-done if it already is. Done tasks move to the Completed folder
    and go back to their previous folder when un-done."""
    try:
        task = runtime.get_store().toggle_task_completion(task_id)
        runtime.get_scheduler().request_sync()
        return task.model_dump()
    except _TOOL_ERRORS as e:
        return _handle_mcp_error(e)


@mcp.tool
def task_move(task_ids: list[str], folder: str) -> dict:
    """Move one or more tasks to a folder by folder name."""
    moved = runtime.get_store().move_tasks_to_folder(task_ids, folder)
    if moved:
        runtime.get_scheduler().request_sync()
    return {"tasks": [t.model_dump() for t in moved], "count": len(moved)}


@mcp.tool
def folders_list() -> dict:
    """List folders. Tasks refer to folders by name."""
    folders = runtime.get_store().get_folders()
    return {"folders": [f.model_dump() for f in folders], "count": len(folders)}


# --- Sync tools ---

@mcp.tool
def sync_status() -> dict:
    """Check whether Notion is connected and how the last sync went."""
    store = runtime.get_store()
    state = runtime.get_scheduler().state
    return {
        "connected": store.is_connected(),
        "state": state.model_dump(mode="json"),
        "message": (
            "Notion connected"
            if store.is_connected()
            else "Notion not connected. Ask the user to POST /api/sync/connect"
        ),
    }


@mcp.tool
async def sync_now(direction: SyncDirection = SyncDirection.BIDIRECTIONAL) -> dict:
    """Sync with Notion immediately. Returns counts of created/updated/failed tasks,
    or ran=false if Notion isn't connected or a sync is already running."""
    if direction == SyncDirection.NONE:
        return _handle_mcp_error(InvalidOperationError("Nothing to sync for direction 'none'"))
    result = await runtime.get_scheduler().trigger_immediate_sync(direction)
    if result is None:
        return {"ran": False, "state": runtime.get_scheduler().state.model_dump(mode="json")}
    return {"ran": True, "result": result.model_dump()}
