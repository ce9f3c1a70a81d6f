from fastapi import APIRouter

from tasksync import runtime
from tasksync.models.notion import ConnectionStatus, ConnectRequest
from tasksync.models.sync import SyncDirection, SyncRunResponse, SyncStatusResponse

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/status")
def sync_status() -> SyncStatusResponse:
    scheduler = runtime.get_scheduler()
    return SyncStatusResponse(
        connected=runtime.get_store().is_connected(),
        state=scheduler.state,
        interval_seconds=scheduler.interval_seconds,
    )


@router.post("/now")
async def sync_now(direction: SyncDirection = SyncDirection.BIDIRECTIONAL) -> SyncRunResponse:
    """Run a sync right away, e.g. for pull-to-refresh.

    Failures come back as one summary message rather than per-item detail.
    """
    if direction == SyncDirection.NONE:
        return SyncRunResponse(ran=False, message="Nothing to sync for direction 'none'.")
    result = await runtime.get_scheduler().trigger_immediate_sync(direction)
    if result is None:
        if not runtime.get_store().is_connected():
            return SyncRunResponse(ran=False, message="Notion is not connected.")
        if runtime.get_scheduler().state.is_syncing:
            return SyncRunResponse(ran=False, message="A sync is already running.")
        return SyncRunResponse(ran=False, message="Sync failed unexpectedly. Check the logs.")
    message = None
    if result.failed:
        message = f"Sync finished with {result.failed} error(s): {result.errors[0]}"
    return SyncRunResponse(ran=True, result=result, message=message)


@router.post("/connect")
def connect(request: ConnectRequest) -> ConnectionStatus:
    """Save credentials, then keep them only if the database is reachable."""
    store = runtime.get_store()
    store.set_credentials(request.api_key.strip(), request.database_id.strip())
    if runtime.get_client().test_connection():
        runtime.get_scheduler().request_sync()
        return ConnectionStatus(connected=True, message="Connection to Notion successful.")
    store.clear_credentials()
    return ConnectionStatus(
        connected=False,
        message="Could not connect to Notion. Check the API key and that the database is shared with the integration.",
    )


@router.post("/test")
def test_connection() -> ConnectionStatus:
    ok = runtime.get_client().test_connection()
    return ConnectionStatus(
        connected=ok,
        message="Connection to Notion successful." if ok else "Could not connect to Notion.",
    )


@router.delete("/connect")
def disconnect() -> ConnectionStatus:
    runtime.get_store().clear_credentials()
    return ConnectionStatus(connected=False, message="Disconnected from Notion.")
