"""Conversion between local tasks and Notion database pages.

The database is expected to have these properties:
  Name (title), Status (status), Folder (select), Due Date (date)
"""

from tasksync.models.notion import RemotePage
from tasksync.models.tasks import COMPLETED, INBOX, Task
from tasksync.timestamps import format_due_date

STATUS_DONE = "Done"
STATUS_NOT_STARTED = "Not started"


def task_to_properties(task: Task) -> dict:
    properties: dict = {
        "Name": {"title": [{"text": {"content": task.name}}]},
        "Status": {"status": {"name": STATUS_DONE if task.completed else STATUS_NOT_STARTED}},
        "Folder": {"select": {"name": task.folder}},
    }
    due = format_due_date(task.due_date)
    if due:
        properties["Due Date"] = {"date": {"start": due}}
    return properties


def build_create_payload(task: Task, database_id: str) -> dict:
    return {
        "parent": {"database_id": database_id},
        "properties": task_to_properties(task),
    }


def build_update_payload(task: Task) -> dict:
    return {"properties": task_to_properties(task)}


def _extract_title(prop: dict | None) -> str:
    if not prop:
        return ""
    parts = []
    for fragment in prop.get("title") or []:
        text = fragment.get("plain_text")
        if text is None:
            text = (fragment.get("text") or {}).get("content", "")
        parts.append(text or "")
    return "".join(parts)


def _extract_completed(prop: dict | None) -> bool:
    status = (prop or {}).get("status") or {}
    return status.get("name") == STATUS_DONE


def _extract_folder(prop: dict | None) -> str:
    select = (prop or {}).get("select") or {}
    return select.get("name") or INBOX


def _extract_due_date(prop: dict | None) -> str | None:
    date = (prop or {}).get("date") or {}
    return format_due_date(date.get("start"))


def parse_page(page: dict) -> RemotePage:
    props = page.get("properties") or {}
    return RemotePage(
        id=page["id"],
        name=_extract_title(props.get("Name")),
        completed=_extract_completed(props.get("Status")),
        folder=_extract_folder(props.get("Folder")),
        due_date=_extract_due_date(props.get("Due Date")),
        last_modified=page.get("last_edited_time"),
    )


def page_to_task_fields(page: RemotePage) -> dict:
    """Local fields to overwrite when pulling a page.

    A completed page lands in the Completed folder and remembers its remote
    folder so un-completing restores it.
    """
    fields: dict = {
        "name": page.name,
        "completed": page.completed,
        "due_date": page.due_date,
    }
    if page.completed:
        fields["folder"] = COMPLETED
        fields["previous_folder"] = page.folder if page.folder != COMPLETED else None
    else:
        fields["folder"] = page.folder
        fields["previous_folder"] = None
    if page.last_modified:
        fields["last_modified"] = page.last_modified
    return fields
