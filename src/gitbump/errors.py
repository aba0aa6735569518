# src/gitbump/errors.py
# =============================================================================
# Error taxonomy for git-bump.
#
# Every failure aborts the whole run; nothing is retried. The CLI maps each
# error to a message on stderr and the error's `exit_code`.
# =============================================================================

from __future__ import annotations

from typing import Optional, Sequence


class GitBumpError(RuntimeError):
    """Base error for release failures."""

    exit_code: int = 1


class UsageError(GitBumpError):
    """Raised for an unrecognized version increment keyword."""

    exit_code = 2


class PreconditionError(GitBumpError):
    """Raised when the repository is not in a state that allows the request."""


class InitialReleaseError(PreconditionError):
    """Raised when no prior release exists and none can be inferred."""


class SynthesisFailure(GitBumpError):
    """Raised when no version literal could be located to patch."""


class ApplyFailure(GitBumpError):
    """Raised when applying, committing or tagging fails."""


class CollaboratorFailure(GitBumpError):
    """Raised when a git query fails for reasons outside our control."""

    def __init__(
        self,
        message: str,
        *,
        command: Optional[Sequence[str]] = None,
        stderr: str = "",
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command else []
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self) -> str:
        msg = super().__str__()
        if self.stderr.strip():
            msg = f"{msg}\n{self.stderr.strip()}"
        return msg
