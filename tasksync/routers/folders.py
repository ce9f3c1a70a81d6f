from fastapi import APIRouter

from tasksync import runtime
from tasksync.exceptions import InvalidOperationError
from tasksync.models.tasks import CreateFolderRequest, DeleteFoldersRequest, Folder, UpdateFolderRequest

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.get("")
def list_folders() -> list[Folder]:
    return runtime.get_store().get_folders()


@router.post("")
def create_folder(request: CreateFolderRequest) -> Folder:
    return runtime.get_store().add_folder(request.name, request.icon)


@router.patch("/{folder_id}")
def update_folder(folder_id: str, request: UpdateFolderRequest) -> Folder:
    folder = runtime.get_store().update_folder(folder_id, request.name, request.icon)
    if request.name is not None:
        runtime.get_scheduler().request_sync()
    return folder


@router.delete("/{folder_id}", status_code=204)
def delete_folder(folder_id: str):
    store = runtime.get_store()
    if not store.delete_folder(folder_id):
        raise InvalidOperationError(f"Folder {folder_id} is a default folder or does not exist.")
    runtime.get_scheduler().request_sync()


@router.post("/delete")
def delete_folders(request: DeleteFoldersRequest) -> dict:
    deleted = runtime.get_store().delete_folders(request.folder_ids)
    if deleted:
        runtime.get_scheduler().request_sync()
    return {"deleted": deleted}
