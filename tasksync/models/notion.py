from pydantic import BaseModel


class NotionCredentials(BaseModel):
    api_key: str
    database_id: str


class RemotePage(BaseModel):
    id: str
    name: str
    completed: bool
    folder: str
    due_date: str | None = None
    last_modified: str | None = None  # Notion last_edited_time


class ArchiveResult(BaseModel):
    success: int = 0
    failed: int = 0


class ConnectRequest(BaseModel):
    api_key: str
    database_id: str


class ConnectionStatus(BaseModel):
    connected: bool
    message: str
