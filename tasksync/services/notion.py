import logging
from collections.abc import Callable, Iterable

import requests

from tasksync.config import get_settings
from tasksync.exceptions import AuthenticationError, IntegrationError, RateLimitError
from tasksync.http_client import get_session
from tasksync.models.notion import ArchiveResult, NotionCredentials, RemotePage
from tasksync.models.tasks import Task
from tasksync.services import mapper

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

_CLIENT_ERRORS = (requests.RequestException, AuthenticationError, IntegrationError, RateLimitError, ValueError)


def _handle_response(resp: requests.Response) -> dict:
    if resp.status_code == 429:
        raise RateLimitError("Notion API rate limit exceeded. Try again later.")
    if resp.status_code in (401, 403):
        raise AuthenticationError(f"Notion auth error ({resp.status_code}): {resp.text[:200]}")
    if resp.status_code == 404:
        raise IntegrationError("Notion resource not found. Is the database shared with the integration?")
    if resp.status_code >= 400:
        raise IntegrationError(f"Notion API error ({resp.status_code}): {resp.text[:200]}")
    return resp.json()


class NotionClient:
    """Request layer over one Notion database.

    Credentials are read through ``credentials`` on every call, so connecting
    or disconnecting takes effect without rebuilding the client. Failures of
    single operations never raise: they come back as False/None.
    """

    def __init__(
        self,
        credentials: Callable[[], NotionCredentials | None],
        session: requests.Session | None = None,
        api_base: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self._credentials = credentials
        self._session = session or get_session()
        self.api_base = (api_base or settings.notion_api_base).rstrip("/")
        self.api_version = api_version or settings.notion_api_version
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds

    def _require_credentials(self) -> NotionCredentials:
        creds = self._credentials()
        if creds is None or not creds.api_key or not creds.database_id:
            raise AuthenticationError(
                "Notion not configured. POST /api/sync/connect with an API key and database id."
            )
        return creds

    def _headers(self, api_key: str, json_body: bool = False) -> dict:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": self.api_version,
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _request(self, method: str, path: str, api_key: str, body: dict | None = None) -> dict:
        resp = self._session.request(
            method,
            f"{self.api_base}{path}",
            headers=self._headers(api_key, json_body=body is not None),
            json=body,
            timeout=self.timeout,
        )
        return _handle_response(resp)

    def test_connection(self) -> bool:
        """Read the configured database; True when the credentials work."""
        try:
            creds = self._require_credentials()
            self._request("GET", f"/databases/{creds.database_id}", creds.api_key)
            return True
        except _CLIENT_ERRORS as e:
            logger.warning("Notion connection test failed: %s", e)
            return False

    def create_record(self, task: Task) -> str | None:
        """Create a page for ``task`` and return its id, or None on failure."""
        try:
            creds = self._require_credentials()
            data = self._request(
                "POST", "/pages", creds.api_key,
                body=mapper.build_create_payload(task, creds.database_id),
            )
            page_id = data.get("id")
            if not page_id:
                raise IntegrationError("Notion create response has no page id")
            return page_id
        except _CLIENT_ERRORS as e:
            logger.error("Failed to create Notion page for %r: %s", task.name, e)
            return None

    def update_record(self, task: Task) -> bool:
        """Overwrite name, status, folder and due date of the linked page."""
        if not task.remote_id:
            logger.info("update_record skipped: task %s has no remote id", task.id)
            return False
        try:
            creds = self._require_credentials()
            self._request(
                "PATCH", f"/pages/{task.remote_id}", creds.api_key,
                body=mapper.build_update_payload(task),
            )
            return True
        except _CLIENT_ERRORS as e:
            logger.error("Failed to update Notion page %s: %s", task.remote_id, e)
            return False

    def archive_record(self, remote_id: str) -> bool:
        """Archive (soft-delete) one page."""
        if not remote_id:
            logger.info("archive_record skipped: empty remote id")
            return False
        try:
            creds = self._require_credentials()
            self._request("PATCH", f"/pages/{remote_id}", creds.api_key, body={"archived": True})
            return True
        except _CLIENT_ERRORS as e:
            logger.error("Failed to archive Notion page %s: %s", remote_id, e)
            return False

    def archive_records(self, remote_ids: Iterable[str]) -> ArchiveResult:
        result = ArchiveResult()
        for remote_id in remote_ids:
            if self.archive_record(remote_id):
                result.success += 1
            else:
                result.failed += 1
        return result

    def query_all_records(self) -> list[RemotePage]:
        """Fetch every page of the database, following pagination cursors.

        A failed page ends pagination early and the pages gathered so far are
        returned; the next sync sees the rest. Raises AuthenticationError only
        when no credentials are configured.
        """
        creds = self._require_credentials()
        pages: list[RemotePage] = []
        cursor: str | None = None
        while True:
            body: dict = {"page_size": PAGE_SIZE}
            if cursor:
                body["start_cursor"] = cursor
            try:
                data = self._request("POST", f"/databases/{creds.database_id}/query", creds.api_key, body=body)
                results = data.get("results") if isinstance(data, dict) else None
                if not isinstance(results, list) or not all(isinstance(item, dict) for item in results):
                    raise IntegrationError("Malformed Notion query response")
                pages.extend(mapper.parse_page(item) for item in results)
            except (*_CLIENT_ERRORS, KeyError, TypeError, AttributeError) as e:
                logger.warning("Notion query stopped after %d pages: %s", len(pages), e)
                break
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        logger.info("Fetched %d tasks from Notion", len(pages))
        return pages
