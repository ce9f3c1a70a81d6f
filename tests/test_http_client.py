from tasksync import http_client
from tasksync.http_client import IDEMPOTENT_METHODS, build_session


class TestBuildSession:
    def test_retry_policy(self):
        session = build_session(retries=4, backoff_factor=0.25)
        retry = session.get_adapter("https://api.notion.com/v1/pages").max_retries
        assert retry.total == 4
        assert retry.backoff_factor == 0.25
        assert 429 in retry.status_forcelist

    def test_post_is_never_retried(self):
        assert "POST" not in IDEMPOTENT_METHODS
        session = build_session(retries=3, backoff_factor=0)
        retry = session.get_adapter("https://api.notion.com").max_retries
        assert "POST" not in retry.allowed_methods
        assert "PATCH" in retry.allowed_methods


class TestGetSession:
    def test_cached(self, monkeypatch):
        monkeypatch.setattr(http_client, "_session", None)
        first = http_client.get_session()
        assert http_client.get_session() is first
