"""Local task store backed by a JSON file.

Every mutation is applied to the in-memory collections first and then the
whole file is rewritten. Tasks are keyed by id, so replaying a write after a
crash is harmless.
"""

import json
import logging
import os
import threading
import uuid
from collections.abc import Iterable
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ValidationError

from tasksync.exceptions import InvalidOperationError, NotFoundError
from tasksync.models.notion import NotionCredentials
from tasksync.models.tasks import COMPLETED, IMPORTANT, INBOX, DateGroup, Folder, SortOption, Task, ViewSettings
from tasksync.timestamps import format_due_date, group_tasks_by_date, now_iso

logger = logging.getLogger(__name__)

DEFAULT_FOLDERS = [
    Folder(id="1", name=INBOX, icon="inbox", is_default=True),
    Folder(id="2", name=IMPORTANT, icon="heart", is_default=True),
    Folder(id="3", name=COMPLETED, icon="check-square", is_default=True),
]


def generate_id() -> str:
    return uuid.uuid4().hex


def sort_tasks(tasks: list[Task], sort: SortOption = "manual") -> list[Task]:
    if sort == "name":
        return sorted(tasks, key=lambda t: t.name.lower())
    if sort == "folder":
        return sorted(tasks, key=lambda t: t.folder.lower())
    if sort == "date":
        # Undated tasks go last
        return sorted(tasks, key=lambda t: (format_due_date(t.due_date) is None, format_due_date(t.due_date) or ""))
    return list(tasks)


def _validate_records(model: type[BaseModel], records, kind: str) -> list:
    """Validate stored records one by one, skipping the ones that don't fit."""
    if not isinstance(records, list):
        return []
    valid = []
    for record in records:
        try:
            valid.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning("Skipping invalid %s record %r: %s", kind, record, e.errors()[0]["msg"])
    return valid


class TaskStore:
    """Reads/writes tasks, folders, Notion credentials and view settings to a local JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._tasks: list[Task] = []
        self._folders: list[Folder] = [f.model_copy() for f in DEFAULT_FOLDERS]
        self._credentials: NotionCredentials | None = None
        self._settings = ViewSettings()
        self._load()

    # --- Persistence ---

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.exception("Failed to read %s, starting empty", self.path)
            return
        if not isinstance(data, dict):
            logger.error("Unexpected content in %s, starting empty", self.path)
            return
        self._tasks = _validate_records(Task, data.get("tasks"), "task")
        folders = _validate_records(Folder, data.get("folders"), "folder")
        if folders:
            names = {f.name for f in folders}
            if all(df.name in names for df in DEFAULT_FOLDERS):
                self._folders = folders
            else:
                self._folders = [f.model_copy() for f in DEFAULT_FOLDERS] + [f for f in folders if not f.is_default]
        creds = data.get("notion")
        if creds:
            try:
                self._credentials = NotionCredentials.model_validate(creds)
            except ValidationError:
                logger.warning("Ignoring invalid Notion credentials in %s", self.path)
        settings = data.get("settings")
        if settings:
            try:
                self._settings = ViewSettings.model_validate(settings)
            except ValidationError:
                logger.warning("Ignoring invalid view settings in %s", self.path)

    def _save(self) -> None:
        data = {
            "tasks": [t.model_dump(mode="json") for t in self._tasks],
            "folders": [f.model_dump(mode="json") for f in self._folders],
            "notion": self._credentials.model_dump() if self._credentials else None,
            "settings": self._settings.model_dump(mode="json"),
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2))
            os.replace(tmp, self.path)
        except OSError:
            logger.exception("Failed to save %s", self.path)

    # --- Tasks ---

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFoundError(f"Task {task_id} not found.")

    def get_all_tasks(self) -> list[Task]:
        with self._lock:
            return [t.model_copy() for t in self._tasks]

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            for task in self._tasks:
                if task.id == task_id:
                    return task.model_copy()
            return None

    def list_tasks(
        self,
        folder: str | None = None,
        sort: SortOption | None = None,
        include_completed: bool = True,
    ) -> list[Task]:
        if sort is None:
            sort = self.get_view_settings().sort_option
        tasks = self.get_all_tasks()
        if folder is not None:
            tasks = [t for t in tasks if t.folder == folder]
        if not include_completed:
            tasks = [t for t in tasks if t.folder != COMPLETED]
        return sort_tasks(tasks, sort)

    def add_task(self, name: str, folder: str = INBOX, due_date: str | None = None) -> Task:
        task = Task(id=generate_id(), name=name, folder=folder, due_date=due_date, last_modified=now_iso())
        with self._lock:
            self._tasks.append(task)
            self._save()
        return task.model_copy()

    def update_task(self, task_id: str, **fields) -> Task:
        """Merge ``fields`` into the task with ``task_id``.

        ``last_modified`` is stamped with the current time unless it is passed
        explicitly, which is how a pull keeps the remote edit time.
        """
        if "id" in fields:
            raise InvalidOperationError("Task id is immutable.")
        fields.setdefault("last_modified", now_iso())
        with self._lock:
            i = self._index(task_id)
            self._tasks[i] = Task.model_validate({**self._tasks[i].model_dump(), **fields})
            self._save()
            return self._tasks[i].model_copy()

    def attach_remote_id(self, task_id: str, remote_id: str) -> None:
        """Link a task to its Notion page. Does not touch last_modified."""
        with self._lock:
            i = self._index(task_id)
            self._tasks[i] = self._tasks[i].model_copy(update={"remote_id": remote_id})
            self._save()

    def delete_task(self, task_id: str) -> Task | None:
        deleted = self.delete_tasks([task_id])
        return deleted[0] if deleted else None

    def delete_tasks(self, task_ids: Iterable[str]) -> list[Task]:
        """Remove tasks and return the ones that existed."""
        ids = set(task_ids)
        with self._lock:
            deleted = [t for t in self._tasks if t.id in ids]
            if deleted:
                self._tasks = [t for t in self._tasks if t.id not in ids]
                self._save()
            return deleted

    def toggle_task_completion(self, task_id: str) -> Task:
        with self._lock:
            task = self._tasks[self._index(task_id)]
            if task.completed:
                return self.update_task(
                    task_id,
                    completed=False,
                    folder=task.previous_folder or INBOX,
                    previous_folder=None,
                )
            return self.update_task(
                task_id,
                completed=True,
                previous_folder=task.folder,
                folder=COMPLETED,
            )

    def move_tasks_to_folder(self, task_ids: Iterable[str], folder: str) -> list[Task]:
        """Move tasks; moving into Completed completes them, moving out un-completes."""
        ids = set(task_ids)
        completing = folder == COMPLETED
        stamp = now_iso()
        with self._lock:
            moved = []
            for i, task in enumerate(self._tasks):
                if task.id not in ids:
                    continue
                self._tasks[i] = task.model_copy(update={
                    "folder": folder,
                    "completed": completing,
                    "previous_folder": task.folder if completing else None,
                    "last_modified": stamp,
                })
                moved.append(self._tasks[i].model_copy())
            if moved:
                self._save()
            return moved

    def reorder_task(self, from_index: int, to_index: int) -> None:
        with self._lock:
            if not (0 <= from_index < len(self._tasks)) or not (0 <= to_index < len(self._tasks)):
                raise InvalidOperationError(f"Cannot move task from {from_index} to {to_index}.")
            task = self._tasks.pop(from_index)
            self._tasks.insert(to_index, task)
            self._save()

    # --- Folders ---

    def get_folders(self) -> list[Folder]:
        with self._lock:
            return [f.model_copy() for f in self._folders]

    def find_folder(self, name: str) -> Folder | None:
        """Look a folder up by name, the key tasks use to reference it."""
        with self._lock:
            for folder in self._folders:
                if folder.name == name:
                    return folder.model_copy()
            return None

    def _folder_index(self, folder_id: str) -> int:
        for i, folder in enumerate(self._folders):
            if folder.id == folder_id:
                return i
        raise NotFoundError(f"Folder {folder_id} not found.")

    def add_folder(self, name: str, icon: str = "folder") -> Folder:
        name = name.strip()
        if not name:
            raise InvalidOperationError("Folder name cannot be empty.")
        with self._lock:
            if self.find_folder(name):
                raise InvalidOperationError(f"Folder '{name}' already exists.")
            folder = Folder(id=generate_id(), name=name, icon=icon)
            self._folders.append(folder)
            self._save()
            return folder.model_copy()

    def update_folder(self, folder_id: str, name: str | None = None, icon: str | None = None) -> Folder:
        """Rename or re-icon a folder. Renames carry the folder's tasks along."""
        with self._lock:
            i = self._folder_index(folder_id)
            folder = self._folders[i]
            updates: dict = {}
            if icon is not None:
                updates["icon"] = icon
            if name is not None and name.strip() != folder.name:
                name = name.strip()
                if folder.is_default:
                    raise InvalidOperationError(f"Default folder '{folder.name}' cannot be renamed.")
                if not name:
                    raise InvalidOperationError("Folder name cannot be empty.")
                if self.find_folder(name):
                    raise InvalidOperationError(f"Folder '{name}' already exists.")
                updates["name"] = name
                self._reassign_tasks({folder.name}, name)
            self._folders[i] = folder.model_copy(update=updates)
            self._save()
            return self._folders[i].model_copy()

    def _reassign_tasks(self, old_names: set[str], new_name: str) -> int:
        stamp = now_iso()
        count = 0
        for i, task in enumerate(self._tasks):
            if task.folder in old_names:
                self._tasks[i] = task.model_copy(update={"folder": new_name, "last_modified": stamp})
                count += 1
        return count

    def delete_folder(self, folder_id: str) -> bool:
        return self.delete_folders([folder_id]) > 0

    def delete_folders(self, folder_ids: Iterable[str]) -> int:
        """Delete non-default folders, moving their tasks to Inbox.

        Default folders in ``folder_ids`` are skipped. Returns how many
        folders were removed.
        """
        ids = set(folder_ids)
        with self._lock:
            doomed = [f for f in self._folders if f.id in ids and not f.is_default]
            if not doomed:
                return 0
            doomed_ids = {f.id for f in doomed}
            self._folders = [f for f in self._folders if f.id not in doomed_ids]
            moved = self._reassign_tasks({f.name for f in doomed}, INBOX)
            self._save()
        logger.info("Deleted %d folders, moved %d tasks to %s", len(doomed), moved, INBOX)
        return len(doomed)

    # --- Notion credentials ---

    def get_credentials(self) -> NotionCredentials | None:
        with self._lock:
            return self._credentials

    def set_credentials(self, api_key: str, database_id: str) -> None:
        with self._lock:
            self._credentials = NotionCredentials(api_key=api_key, database_id=database_id)
            self._save()

    def clear_credentials(self) -> None:
        """Forget the credentials. Linked tasks keep their remote ids."""
        with self._lock:
            self._credentials = None
            self._save()

    def is_connected(self) -> bool:
        creds = self.get_credentials()
        return bool(creds and creds.api_key and creds.database_id)

    # --- View settings ---

    def get_view_settings(self) -> ViewSettings:
        with self._lock:
            return self._settings.model_copy()

    def update_view_settings(self, **fields) -> ViewSettings:
        """Merge ``fields`` into the saved view settings; None values are ignored."""
        fields = {k: v for k, v in fields.items() if v is not None}
        with self._lock:
            self._settings = ViewSettings.model_validate({**self._settings.model_dump(), **fields})
            self._save()
            return self._settings.model_copy()

    # --- Views ---

    def upcoming(self, today: date | None = None) -> list[DateGroup]:
        """Incomplete tasks grouped under their due-date heading."""
        tasks = self.list_tasks(include_completed=False)
        return [
            DateGroup(label=label, date=due, tasks=group)
            for label, due, group in group_tasks_by_date(tasks, today)
        ]
