# src/gitbump/release.py
# =============================================================================
# Release orchestration: version selection -> patch -> commit -> tag
# -----------------------------------------------------------------------------
# Everything that can be decided up front (version, tag collision, patch
# synthesis) is decided before the first mutation. The only compensating
# action is a hard reset when a commit fails after our patch was applied.
# =============================================================================

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .diffpatch import DiffParseError, synthesize_patch
from .errors import (
    ApplyFailure,
    InitialReleaseError,
    PreconditionError,
    SynthesisFailure,
)
from .git import Git
from .notes import format_summary
from .releases import Release, ReleaseHistory
from .utils.logging import get_logger
from .version import Version, next_version

log = get_logger("gitbump.release")

INITIAL = """\
Looks like this is your first release.  Please add the version number to the
work tree (e.g., in your Makefile), stage your changes, and run git bump again.

If this isn't your first release, tag your most recent prior release so that
git bump can find it:

        git tag -s v1.2.3 8675309"""

PATCH_FAILURE = "Couldn't patch.  Update the version number in the work tree and try again."
DEFAULT_LOG_FORMAT = "* %s."


@dataclass
class ReleaseResult:
    tag: str
    version: Version
    summary: Optional[str]
    patched: bool


class Releaser:
    """Create, amend and inspect releases of the repository behind `git`."""

    def __init__(self, git: Git, *, history: Optional[ReleaseHistory] = None, workdir: Optional[Path] = None) -> None:
        self.git = git
        self.history = history or ReleaseHistory(git)
        self.workdir = Path(workdir) if workdir else (git.cwd or Path.cwd())

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def latest(self) -> Optional[Release]:
        return self.history.latest

    @property
    def name(self) -> str:
        if self.latest and self.latest.name:
            return self.latest.name
        return self.workdir.resolve().name

    def next_version(self, request: Optional[str] = None) -> Version:
        latest = self.latest
        return next_version(request, latest.version if latest else None)

    def patch(self, version: Version, *, force: bool = False) -> Optional[str]:
        """Patch moving the latest release's version literal to `version`."""
        latest = self.latest
        if latest is None:
            return None
        diff = latest.inverse_diff(0 if force else 1)
        if diff is None:
            log.info("%s has no parent commit to learn from", latest.tag)
            return None
        try:
            return synthesize_patch(diff, str(latest.version), str(version))
        except DiffParseError as e:
            raise SynthesisFailure(f"{PATCH_FAILURE}\n{e}") from e

    def changelog(self) -> Optional[str]:
        """Commit subjects since the latest release, shaped like its notes."""
        latest = self.latest
        if latest is None:
            return None
        template = latest.changelog_format
        if len(self.history.releases) >= 2 and not template:
            return None
        return self.git.log_range(f"{latest.sha1}..", template or DEFAULT_LOG_FORMAT)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def release(self, request: Optional[str] = None, *, force: bool = False, edit: bool = True) -> ReleaseResult:
        version = self.next_version(request)
        tag = f"v{version}"
        if self.git.rev_parse(tag) and not force:
            raise PreconditionError("Tag already exists.  If it hasn't been pushed yet, use --force to override.")

        initial_commit = self.git.head() is None
        patched = False
        if not initial_commit and not self.git.has_changes("HEAD"):
            if self.latest is None:
                raise InitialReleaseError(INITIAL)
            patch = self.patch(version, force=force)
            if patch is None:
                raise SynthesisFailure(PATCH_FAILURE)
            log.debug("synthesized patch:\n%s", patch)
            if not self.git.apply(patch):
                raise ApplyFailure(PATCH_FAILURE)
            patched = True
        elif self.git.has_changes() or not self.git.has_changes("--cached"):
            # nothing staged, or a tree only partly staged
            raise PreconditionError("Discard or stage your changes.")

        message = f"{self.name} {version}\n\n"
        if self.latest:
            message += self.changelog() or ""
        with tempfile.NamedTemporaryFile(
            "w", prefix="git-commit", suffix=".txt", delete=False, encoding="utf-8", errors="surrogateescape", newline=""
        ) as f:
            f.write(message + "\n")
            message_path = Path(f.name)
        try:
            committed = self.git.commit(message_path, edit=edit, verbose=not initial_commit)
        finally:
            message_path.unlink()
        if not committed:
            if patched:
                log.warning("commit failed; resetting the work tree")
                self.git.reset_hard()
            raise ApplyFailure("Commit failed.")

        self._tag(tag)
        log.info("released %s", tag)
        return ReleaseResult(tag=tag, version=version, summary=self._summary(), patched=patched)

    def redo(self, *, edit: bool = True) -> ReleaseResult:
        if self.git.has_changes():
            raise PreconditionError("Discard or stage your changes.")
        latest = self.latest
        if latest is None or latest.sha1 != self.git.head():
            raise PreconditionError("Can only amend the top-most commit.")
        if not self.git.amend(edit=edit):
            raise ApplyFailure("Amending the release commit failed.")
        self._tag(latest.tag)
        return ReleaseResult(tag=latest.tag, version=latest.version, summary=self._summary(), patched=False)

    def log(self, args: Sequence[str] = ()) -> int:
        latest = self.latest
        if latest:
            return self.git.log_passthrough([f"{latest.sha1}..", *args])
        return self.git.log_passthrough(args)

    def show(self, target: Optional[str] = None) -> Optional[Release]:
        if target is None:
            return self.latest
        return self.history.find(target)

    def message(self, release: Release) -> str:
        return self.git.log_format(release.sha1, "%B")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _tag(self, name: str) -> None:
        latest = self.latest
        sign = not (latest and not latest.is_signed)
        fmt = "%B" if len(self.history.releases) < 2 or (latest and latest.has_body) else "%s"
        body = self.git.log_format("HEAD", fmt)
        if not self.git.tag(name, body, sign=sign):
            raise ApplyFailure("Tag failed.  Create it by hand or use git reset --soft HEAD^ to try again.")

    def _summary(self) -> Optional[str]:
        # notes of the commit just made, in one line
        return format_summary(self.git.log_format("HEAD", "%b"))
