"""
cloudrun_rollback.exceptions — Error taxonomy for the rollback tool.

Every error is terminal: nothing in the library retries or recovers locally.
The CLI maps each subclass to a distinct exit code so operators can tell
"nothing to roll back to" apart from "the platform call broke".
"""

from __future__ import annotations


class RollbackError(RuntimeError):
    """Base class for rollback failures."""


class ConfigurationError(RollbackError):
    """Raised when a required input is missing or invalid."""


class CollaboratorFailure(RollbackError):
    """
    Raised when an external gcloud call fails or returns malformed output.

    Attributes:
        command:    The argv that was executed, if any.
        returncode: Process exit status (None when the process never ran or timed out).
        stderr:     Tail of the process stderr, if captured.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr


class RevisionNotFound(RollbackError):
    """Raised when no retired revision exists to roll back to."""
