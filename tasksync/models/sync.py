from enum import Enum

from pydantic import BaseModel


class SyncDirection(str, Enum):
    NONE = "none"
    TO_REMOTE = "toRemote"
    FROM_REMOTE = "fromRemote"
    BIDIRECTIONAL = "bidirectional"

    @property
    def pushes(self) -> bool:
        return self in (SyncDirection.TO_REMOTE, SyncDirection.BIDIRECTIONAL)

    @property
    def pulls(self) -> bool:
        return self in (SyncDirection.FROM_REMOTE, SyncDirection.BIDIRECTIONAL)


class SyncState(BaseModel):
    last_sync_time: str | None = None
    direction: SyncDirection = SyncDirection.NONE
    is_syncing: bool = False
    error_count: int = 0


class SyncResult(BaseModel):
    success: int = 0
    failed: int = 0
    created: int = 0
    updated: int = 0
    errors: list[str] = []

    def record_created(self) -> None:
        self.created += 1
        self.success += 1

    def record_updated(self) -> None:
        self.updated += 1
        self.success += 1

    def record_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


class SyncStatusResponse(BaseModel):
    connected: bool
    state: SyncState
    interval_seconds: float


class SyncRunResponse(BaseModel):
    ran: bool
    result: SyncResult | None = None
    message: str | None = None
