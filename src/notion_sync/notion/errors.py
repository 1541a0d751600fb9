"""Errors raised by the Notion REST client."""

from __future__ import annotations


class NotionError(Exception):
    """Base class for all Notion client failures."""


class NotionTransportError(NotionError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


class NotionAPIError(NotionError):
    """Notion answered with a non-2xx status code."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}")


class NotionRateLimitedError(NotionAPIError):
    """HTTP 429. ``retry_after`` is the server-requested wait in seconds (>= 1)."""

    def __init__(self, retry_after: int, body: str = "") -> None:
        super().__init__(429, body)
        self.retry_after = retry_after


class NotionResponseError(NotionError):
    """Notion answered 2xx but the body was not the JSON object expected."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Malformed response body (HTTP {status_code})")
