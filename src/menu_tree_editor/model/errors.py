"""Error taxonomy for the menu tree editor.

Structural errors and validation problems are plain values returned alongside a tree, so a
failed edit never leaves the working tree half-mutated. Exceptions are reserved for
conditions the caller cannot continue from: an inconsistent baseline at load time, a
payload that is not eligible for synchronization, and failures of the sync collaborator.
"""

from enum import Enum
from typing import Any, List, NamedTuple, Optional


class StructuralErrorKind(Enum):
    """Kinds of structural errors reported by the mutation engine."""

    SAME_NODE = "same_node"
    NOT_FOUND = "not_found"
    INVALID_TARGET = "invalid_target"


class StructuralError(NamedTuple):
    """Describe why a structural edit was rejected."""

    kind: StructuralErrorKind
    node_id: Any
    message: str

    def __str__(self) -> str:
        return self.message


class ValidationFailed(NamedTuple):
    """A required field missing or invalid on a menu item."""

    node_id: Any
    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.node_id}: {self.field} {self.reason}"


class BaselineIntegrityError(Exception):
    """Raised when a loaded baseline violates a tree invariant (e.g. duplicate ids)."""


class ValidationError(Exception):
    """Raised when pending items are not eligible for inclusion in a sync payload.

    Args:
        problems: The validation problems found.

    """

    def __init__(self, problems: List[ValidationFailed]):
        """Initialize the error with the list of problems."""
        self.problems = list(problems)
        summary = "; ".join(str(problem) for problem in self.problems)
        super().__init__(f"{len(self.problems)} item(s) not ready to sync: {summary}")


class SyncError(Exception):
    """Base class for errors surfaced by the sync collaborator."""


class TransportFailure(SyncError):
    """Raised when the sync collaborator could not be reached or could not persist anything.

    The working tree and the modified set are left intact so the save can be retried.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        """Initialize the failure with a message and the optional underlying exception."""
        super().__init__(message)
        self.cause = cause
