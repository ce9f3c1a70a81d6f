from typing import Literal

from pydantic import BaseModel

INBOX = "Inbox"
IMPORTANT = "Important"
COMPLETED = "Completed"

SortOption = Literal["manual", "name", "date", "folder"]


class Task(BaseModel):
    id: str
    name: str
    completed: bool = False
    folder: str = INBOX
    previous_folder: str | None = None
    due_date: str | None = None  # ISO calendar date
    remote_id: str | None = None  # Notion page id, set after the first push
    last_modified: str  # ISO-8601 UTC


class Folder(BaseModel):
    id: str
    name: str
    icon: str
    is_default: bool = False


class CreateTaskRequest(BaseModel):
    name: str
    folder: str = INBOX
    due_date: str | None = None


class UpdateTaskRequest(BaseModel):
    name: str | None = None
    due_date: str | None = None


class MoveTasksRequest(BaseModel):
    task_ids: list[str]
    folder: str


class ReorderTaskRequest(BaseModel):
    from_index: int
    to_index: int


class DeleteTasksRequest(BaseModel):
    task_ids: list[str]


class DeleteTasksResponse(BaseModel):
    deleted: int
    archived: int = 0
    archive_failed: int = 0


class CreateFolderRequest(BaseModel):
    name: str
    icon: str = "folder"


class UpdateFolderRequest(BaseModel):
    name: str | None = None
    icon: str | None = None


class DeleteFoldersRequest(BaseModel):
    folder_ids: list[str]


class DateGroup(BaseModel):
    label: str  # "Today", "Tomorrow", "Friday, January 31" or "No Date"
    date: str | None = None
    tasks: list[Task]


class ViewSettings(BaseModel):
    show_completed_in_today: bool = False
    show_folder_names: bool = True
    sort_option: SortOption = "manual"


class UpdateViewSettingsRequest(BaseModel):
    show_completed_in_today: bool | None = None
    show_folder_names: bool | None = None
    sort_option: SortOption | None = None
