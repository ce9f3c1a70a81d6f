class AuthenticationError(Exception):
    """Raised when Notion credentials are missing or invalid."""


class IntegrationError(Exception):
    """Raised when a Notion API call fails."""


class RateLimitError(Exception):
    """Raised when the Notion API rate limit is hit."""


class NotFoundError(Exception):
    """Raised when a task or folder id is unknown to the local store."""


class InvalidOperationError(Exception):
    """Raised when a local mutation would break a store invariant."""
