"""HTTP session shared by every Notion call."""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tasksync.config import get_settings

# Page creation (POST) is never retried here: a retry after a lost response
# would create the task twice in Notion.
IDEMPOTENT_METHODS = ["GET", "PATCH"]

_session: requests.Session | None = None


def build_session(retries: int, backoff_factor: float) -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=IDEMPOTENT_METHODS,
        respect_retry_after_header=True,
        raise_on_status=False,
    ))
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def get_session() -> requests.Session:
    global _session
    if _session is None:
        settings = get_settings()
        _session = build_session(settings.http_retries, settings.http_backoff_factor)
    return _session
