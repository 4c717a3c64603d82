"""Error taxonomy for taskgraph.

Three kinds are fatal and end the run through the CLI's single handler.
TASK_NOT_FOUND is displayable and only fatal when explicitly requested.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Categories of failure surfaced to the user."""

    RESOLUTION_FAILED = "Failed to read Taskfile"
    MERGE_FAILED = "Failed to merge Taskfile"
    CYCLE_DETECTED = "Failed to sort graph"
    TASK_NOT_FOUND = "Task not found"

    @property
    def fatal(self) -> bool:
        return self is not ErrorKind.TASK_NOT_FOUND


class TaskgraphError(Exception):
    """Base class for all taskgraph errors."""

    kind: ErrorKind = ErrorKind.RESOLUTION_FAILED

    def describe(self) -> str:
        """Return the user-facing message, prefixed by the error category."""
        return f"{self.kind.value}: {self}"


class ResolutionError(TaskgraphError):
    """Raised when a Taskfile cannot be located, fetched, or decoded."""

    kind = ErrorKind.RESOLUTION_FAILED


class MergeError(TaskgraphError):
    """Raised when included Taskfiles cannot be merged into one document."""

    kind = ErrorKind.MERGE_FAILED


class CycleError(TaskgraphError):
    """Raised when the Taskfile inclusion graph contains a cycle."""

    kind = ErrorKind.CYCLE_DETECTED


class TaskNotFoundError(TaskgraphError):
    """Raised when a requested task doesn't exist."""

    kind = ErrorKind.TASK_NOT_FOUND
