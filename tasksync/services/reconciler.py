"""Three-pass merge between the local store and the Notion database.

1. Matched pairs: the side with the newer last_modified wins; ties are left alone.
2. Local-only tasks are created in Notion and linked.
3. Notion-only pages are created locally and linked.

Nothing is ever deleted here. Failed items are counted and retried on the
next run.
"""

import logging

from tasksync.models.notion import RemotePage
from tasksync.models.sync import SyncDirection, SyncResult
from tasksync.models.tasks import Task
from tasksync.services.mapper import page_to_task_fields
from tasksync.services.notion import NotionClient
from tasksync.services.store import TaskStore
from tasksync.timestamps import compare_timestamps

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(self, store: TaskStore, client: NotionClient):
        self._store = store
        self._client = client

    def reconcile(self, direction: SyncDirection = SyncDirection.BIDIRECTIONAL) -> SyncResult:
        if direction == SyncDirection.NONE:
            raise ValueError("Cannot reconcile with direction 'none'")

        local_tasks = self._store.get_all_tasks()
        try:
            remote_pages = self._client.query_all_records()
        except Exception as e:
            logger.exception("Sync failed while fetching Notion pages")
            return SyncResult(success=0, failed=1, created=0, updated=0, errors=[f"sync failed: {e}"])

        linked: dict[str, Task] = {}
        unlinked: list[Task] = []
        for task in local_tasks:
            if task.remote_id:
                linked[task.remote_id] = task
            else:
                unlinked.append(task)
        remote_by_id = {page.id: page for page in remote_pages}

        result = SyncResult()

        for remote_id, task in linked.items():
            page = remote_by_id.get(remote_id)
            if page is None:
                continue
            self._guarded(result, task.name, self._merge_pair, task, page, direction, result)

        if direction.pushes:
            for task in unlinked:
                self._guarded(result, task.name, self._push_new, task, result)

        if direction.pulls:
            for remote_id, page in remote_by_id.items():
                if remote_id in linked:
                    continue
                self._guarded(result, page.name, self._pull_new, page, result)

        logger.info(
            "Sync completed: %d success, %d failed, %d created, %d updated",
            result.success, result.failed, result.created, result.updated,
        )
        return result

    @staticmethod
    def _guarded(result: SyncResult, label: str, fn, *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            logger.exception("Sync error on %r", label)
            result.record_failure(f"Error: {label}: {e}")

    def _merge_pair(self, task: Task, page: RemotePage, direction: SyncDirection, result: SyncResult) -> None:
        comparison = compare_timestamps(task.last_modified, page.last_modified)
        if comparison > 0 and direction.pushes:
            logger.info("Pushing to Notion: %r (folder: %s)", task.name, task.folder)
            if self._client.update_record(task):
                result.record_updated()
            else:
                result.record_failure(f"Failed to push: {task.name}")
        elif comparison < 0 and direction.pulls:
            logger.info("Pulling from Notion: %r (folder: %s)", page.name, page.folder)
            self._store.update_task(task.id, **page_to_task_fields(page))
            result.record_updated()

    def _push_new(self, task: Task, result: SyncResult) -> None:
        remote_id = self._client.create_record(task)
        if remote_id:
            self._store.attach_remote_id(task.id, remote_id)
            result.record_created()
        else:
            result.record_failure(f"Failed to create: {task.name}")

    def _pull_new(self, page: RemotePage, result: SyncResult) -> None:
        logger.info("Creating local task from Notion: %r", page.name)
        task = self._store.add_task(page.name, page.folder, page.due_date)
        self._store.attach_remote_id(task.id, page.id)
        self._store.update_task(task.id, **page_to_task_fields(page))
        result.record_created()
