"""Composition root: one store, client, reconciler and scheduler per process."""

from functools import lru_cache

from tasksync.config import get_settings
from tasksync.services.notion import NotionClient
from tasksync.services.reconciler import Reconciler
from tasksync.services.scheduler import SyncScheduler
from tasksync.services.store import TaskStore


@lru_cache
def get_store() -> TaskStore:
    settings = get_settings()
    store = TaskStore(settings.data_file)
    if not store.is_connected() and settings.notion_api_key and settings.notion_database_id:
        store.set_credentials(settings.notion_api_key, settings.notion_database_id)
    return store


@lru_cache
def get_client() -> NotionClient:
    return NotionClient(get_store().get_credentials)


@lru_cache
def get_reconciler() -> Reconciler:
    return Reconciler(get_store(), get_client())


@lru_cache
def get_scheduler() -> SyncScheduler:
    settings = get_settings()
    return SyncScheduler(
        get_store(),
        get_reconciler(),
        interval_seconds=settings.sync_interval_seconds,
        debounce_seconds=settings.sync_debounce_seconds,
    )
