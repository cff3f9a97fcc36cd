"""
chatlink error types.

Every failure of the query protocol surfaces as one of these on the caller's
future. Nothing here is raised out of the inbound message pipeline.
"""

from typing import Any, Optional


class ChatLinkError(Exception):
    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConnectionError(ChatLinkError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class LoginError(ChatLinkError):
    def __init__(self, message: str):
        super().__init__("login_error", message)


class QueryError(ChatLinkError):
    """Base class for failures of a single query."""


class QueryUnavailableError(QueryError):
    def __init__(self, message: str = "Unavailable during init"):
        super().__init__("unavailable", message)


class QueryTimeoutError(QueryError):
    def __init__(self, query: str, target: int, timeout: float):
        super().__init__("timeout", f"Query {query!r} to {target} timed out after {timeout}s")
        self.query = query
        self.target = target


class QueryRejectedError(QueryError):
    """The peer answered with ok: false. `details` holds the error value it sent, if any."""

    def __init__(self, query: str, target: int, error: Optional[Any] = None):
        super().__init__("rejected", f"Query {query!r} rejected by {target}", error)
        self.query = query
        self.target = target


class QueryCancelledError(QueryError):
    def __init__(self, message: str = "Query cancelled"):
        super().__init__("cancelled", message)


class QueryNotSentError(QueryError):
    """The host connection refused the query before it left the client."""

    def __init__(self, query: str, target: int, reason: str):
        super().__init__("not_sent", f"Query {query!r} to {target} not sent: {reason}")
        self.query = query
        self.target = target


class ResponseDecodeError(QueryError):
    """An answer arrived but did not have the expected shape."""

    def __init__(self, query: str, raw: Any):
        super().__init__("bad_data", f"Bad data during {query!r} query")
        self.query = query
        self.raw = raw


class CategoryDisabledError(ChatLinkError):
    def __init__(self, category: str):
        super().__init__("category_disabled", f"Category {category!r} is disabled")
