"""HTTP request handling for an ask-database endpoint."""

from askdb.server.handler import (
    AskDatabaseHandler,
    AskDatabaseRequest,
    HandlerResponse,
    status_for_error,
)

__all__ = [
    "AskDatabaseHandler",
    "AskDatabaseRequest",
    "HandlerResponse",
    "status_for_error",
]
