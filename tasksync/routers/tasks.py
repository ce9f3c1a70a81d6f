from fastapi import APIRouter

from tasksync import runtime
from tasksync.exceptions import NotFoundError
from tasksync.models.tasks import (
    CreateTaskRequest,
    DateGroup,
    DeleteTasksRequest,
    DeleteTasksResponse,
    MoveTasksRequest,
    ReorderTaskRequest,
    SortOption,
    Task,
    UpdateTaskRequest,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _changed() -> None:
    runtime.get_scheduler().request_sync()


def _delete(task_ids: list[str]) -> DeleteTasksResponse:
    store = runtime.get_store()
    deleted = store.delete_tasks(task_ids)
    response = DeleteTasksResponse(deleted=len(deleted))
    remote_ids = [t.remote_id for t in deleted if t.remote_id]
    if remote_ids and store.is_connected():
        archived = runtime.get_client().archive_records(remote_ids)
        response.archived = archived.success
        response.archive_failed = archived.failed
    if deleted:
        _changed()
    return response


@router.get("")
def list_tasks(
    folder: str | None = None,
    sort: SortOption | None = None,
    include_completed: bool = True,
) -> list[Task]:
    """List tasks. Without ``sort`` the saved view setting applies."""
    return runtime.get_store().list_tasks(folder, sort, include_completed)


@router.get("/upcoming")
def upcoming_tasks() -> list[DateGroup]:
    return runtime.get_store().upcoming()


@router.get("/{task_id}")
def get_task(task_id: str) -> Task:
    task = runtime.get_store().get_task(task_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found.")
    return task


@router.post("")
def create_task(request: CreateTaskRequest) -> Task:
    task = runtime.get_store().add_task(request.name, request.folder, request.due_date)
    _changed()
    return task


@router.patch("/{task_id}")
def update_task(task_id: str, request: UpdateTaskRequest) -> Task:
    fields = request.model_dump(exclude_unset=True)
    if fields.get("name") is None:
        fields.pop("name", None)
    if not fields:
        return get_task(task_id)
    task = runtime.get_store().update_task(task_id, **fields)
    _changed()
    return task


@router.post("/{task_id}/toggle")
def toggle_task(task_id: str) -> Task:
    task = runtime.get_store().toggle_task_completion(task_id)
    _changed()
    return task


@router.post("/move")
def move_tasks(request: MoveTasksRequest) -> list[Task]:
    moved = runtime.get_store().move_tasks_to_folder(request.task_ids, request.folder)
    if moved:
        _changed()
    return moved


@router.post("/reorder", status_code=204)
def reorder_task(request: ReorderTaskRequest):
    runtime.get_store().reorder_task(request.from_index, request.to_index)


@router.delete("/{task_id}")
def delete_task(task_id: str) -> DeleteTasksResponse:
    response = _delete([task_id])
    if response.deleted == 0:
        raise NotFoundError(f"Task {task_id} not found.")
    return response


@router.post("/delete")
def delete_tasks(request: DeleteTasksRequest) -> DeleteTasksResponse:
    return _delete(request.task_ids)
