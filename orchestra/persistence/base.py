"""Chat store interface.

A chat store persists chat sessions (with a progress snapshot) and their
messages. Agents reach it through typed database operations; every
operation resolves to an OperationResult and never raises. Backends
implement the operations as blocking methods and `execute` runs them in a
worker thread.
"""

import logging
from typing import Any

from fastapi.concurrency import run_in_threadpool

from orchestra.models.execution import (
    DatabaseOperation,
    DatabaseOperationType,
    OperationResult,
)

logger = logging.getLogger(__name__)


class ChatStoreError(Exception):
    """Exception raised by a chat store for a rejected request."""
    pass


class ChatStore:
    """Protocol for chat history storage backends."""

    def create_tables(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def create_session(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def save_message(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def update_snapshot(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def get_session(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def get_sessions(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    def delete_session(self, data: dict[str, Any]) -> OperationResult:
        raise NotImplementedError

    async def execute(self, operation: DatabaseOperation) -> OperationResult:
        """dispatch an operation; failures come back as unsuccessful results."""
        handler = getattr(self, operation.type.value)
        try:
            return await run_in_threadpool(handler, operation.data)
        except Exception as e:
            logger.error("Chat store operation %s failed: %s", operation.type.value, e)
            return failure(operation.type, str(e) or type(e).__name__)


def success(
    operation_type: DatabaseOperationType, data: Any = None, message: str | None = None
) -> OperationResult:
    return OperationResult(success=True, operation_type=operation_type, data=data, message=message)


def failure(operation_type: DatabaseOperationType, error: str) -> OperationResult:
    return OperationResult(success=False, operation_type=operation_type, error=error)


def require(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value in (None, ""):
        raise ChatStoreError(f"{key} field is required")
    return value
