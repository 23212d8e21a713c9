"""Exceptions raised by the Graph mail client."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class GraphMailError(RuntimeError):
    """Base class for every failure surfaced by this package."""


class AuthError(GraphMailError):
    """Token exchange failed or returned no usable token."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RequestError(GraphMailError):
    """A mail endpoint answered with a non-success status or an unreadable body."""

    def __init__(
        self,
        operation: str,
        body: str,
        *,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message or f"Failed to {operation}: {body}")
        self.operation = operation
        self.status_code = status_code
        self.body = body


class FolderStep(str, Enum):
    LOOKUP = "folder lookup"
    CREATE = "folder creation"
    MOVE = "move"


class SubFlowStepError(RequestError):
    """One step of the move-to-folder sequence failed."""

    def __init__(
        self,
        step: FolderStep,
        operation: str,
        body: str,
        *,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(
            operation,
            body,
            status_code=status_code,
            message=f"{step.value} failed: could not {operation}: {body}",
        )
        self.step = step
