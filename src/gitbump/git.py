# src/gitbump/git.py
# =============================================================================
# Thin wrapper over the `git` binary
# -----------------------------------------------------------------------------
#   • strict argv lists, never shell=True
#   • queries capture raw bytes, decode them without newline translation and
#     raise CollaboratorFailure on failure
#   • interactive steps (commit with an editor, log paging) inherit the TTY
# =============================================================================

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import CollaboratorFailure
from .utils.logging import get_logger

log = get_logger("gitbump.git")

TAG_PATTERN = "refs/tags/v[0-9]*"
# lightweight tags have no peeled object; fall back to the ref's own object
TAG_FORMAT = (
    "%(refname:short)%00"
    "%(if)%(*objectname)%(then)%(*objectname)%(else)%(objectname)%(end)%00"
    "%(if)%(*objectname)%(then)%(*committerdate:unix)%(else)%(committerdate:unix)%(end)%00"
    "%(subject)"
)

TagRef = Tuple[str, str, str]

# diffs and patches must survive CRLF and non-UTF-8 content byte for byte
ENCODING = "utf-8"
ERRORS = "surrogateescape"


class Git:
    """Blocking calls into one repository's git."""

    def __init__(self, executable: str = "git", cwd: Optional[Union[str, Path]] = None) -> None:
        self.executable = executable
        self.cwd = Path(cwd) if cwd else None

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _argv(self, args: Sequence[str]) -> List[str]:
        return [self.executable, *args]

    def run(
        self,
        *args: str,
        input: Optional[str] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """
        Run git with captured output decoded to text.

        Bytes are exchanged unchanged: no newline translation, and bytes that
        are not UTF-8 round-trip through ``surrogateescape``.
        """
        argv = self._argv(args)
        log.debug("$ %s", " ".join(argv))
        try:
            cp = subprocess.run(
                argv,
                cwd=str(self.cwd) if self.cwd else None,
                input=None if input is None else input.encode(ENCODING, ERRORS),
                capture_output=True,
            )
        except FileNotFoundError as e:
            raise CollaboratorFailure(f"Git executable not found: {self.executable}", command=argv) from e
        cp.stdout = cp.stdout.decode(ENCODING, ERRORS)
        cp.stderr = cp.stderr.decode(ENCODING, "replace")
        if check and cp.returncode != 0:
            raise CollaboratorFailure(
                f"Error running Git: {' '.join(argv)}",
                command=argv,
                stderr=cp.stderr,
                returncode=cp.returncode,
            )
        return cp

    def output(self, *args: str) -> str:
        return self.run(*args).stdout

    def call(self, *args: str) -> int:
        """Run git attached to the terminal (editors, pagers); return the exit code."""
        argv = self._argv(args)
        log.debug("$ %s", " ".join(argv))
        try:
            return subprocess.call(argv, cwd=str(self.cwd) if self.cwd else None)
        except FileNotFoundError as e:
            raise CollaboratorFailure(f"Git executable not found: {self.executable}", command=argv) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def tag_refs(self) -> List[TagRef]:
        """(tag, commit sha, subject) for release tags, oldest tagged commit first."""
        out = self.output("for-each-ref", TAG_PATTERN, "--sort=*committerdate", f"--format={TAG_FORMAT}")
        dated: List[Tuple[int, TagRef]] = []
        for line in out.split("\n"):
            if not line:
                continue
            parts = line.split("\0")
            if len(parts) != 4 or not parts[2].isdigit():
                log.warning("Skipping unreadable tag ref line: %r", line)
                continue
            dated.append((int(parts[2]), (parts[0], parts[1], parts[3])))
        # lightweight tags have no *committerdate, so git sorts them first
        dated.sort(key=lambda item: item[0])
        return [ref for _, ref in dated]

    def rev_parse(self, ref: str) -> Optional[str]:
        """Object name for `ref`, None when it does not resolve."""
        cp = self.run("rev-parse", "--verify", "-q", ref, check=False)
        sha = cp.stdout.strip()
        return sha or None

    def head(self) -> Optional[str]:
        return self.rev_parse("HEAD")

    def current_branch(self) -> str:
        cp = self.run("rev-parse", "--abbrev-ref", "HEAD", check=False)
        return cp.stdout.strip() or "HEAD"

    def merge_base(self, a: str, b: str) -> Optional[str]:
        cp = self.run("merge-base", a, b, check=False)
        if cp.returncode not in (0, 1):
            raise CollaboratorFailure(
                f"Error running Git: merge-base {a} {b}",
                command=self._argv(["merge-base", a, b]),
                stderr=cp.stderr or "",
                returncode=cp.returncode,
            )
        return cp.stdout.strip() or None

    def is_ancestor(self, commit: str, head: str = "HEAD") -> bool:
        return self.merge_base(commit, head) == commit

    def object_type(self, name: str) -> str:
        return self.output("cat-file", "-t", name).strip()

    def tag_object(self, name: str) -> str:
        return self.output("cat-file", "tag", name)

    def log_format(self, ref: str, fmt: str) -> str:
        return self.output("log", "-1", f"--pretty=format:{fmt}", ref)

    def log_range(self, rev_range: str, fmt: str) -> str:
        return self.output("log", "--no-merges", "--reverse", f"--pretty=format:{fmt}", rev_range)

    def diff(self, a: str, b: str, *, context: int = 1) -> str:
        return self.output(
            "diff",
            f"-U{context}",
            "--no-color",
            "--no-ext-diff",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            f"{a}..{b}",
        )

    def has_changes(self, *args: str) -> bool:
        """True when `git diff <args>` reports anything."""
        return bool(self.output("diff", "--no-ext-diff", *args).strip())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def apply(self, patch: str) -> bool:
        cp = self.run("apply", "--unidiff-zero", "--index", input=patch, check=False)
        if cp.returncode != 0:
            log.error("git apply rejected the patch:\n%s", (cp.stderr or "").strip())
        return cp.returncode == 0

    def commit(
        self,
        message_file: Union[str, Path],
        *,
        edit: bool = True,
        verbose: bool = True,
    ) -> bool:
        args = ["commit", "--file", str(message_file)]
        args.append("--edit" if edit else "--no-edit")
        if verbose:
            args.append("--verbose")
        return self.call(*args) == 0

    def amend(self, *, edit: bool = True) -> bool:
        args = ["commit", "--amend", "--verbose", "--reset-author"]
        if not edit:
            args.append("--no-edit")
        return self.call(*args) == 0

    def reset_hard(self) -> None:
        self.run("reset", "-q", "--hard", "HEAD")

    def tag(self, name: str, message: str, *, sign: bool, force: bool = True) -> bool:
        args = ["tag"]
        if force:
            args.append("-f")
        args += ["-s" if sign else "-a", name, "-m", message]
        return self.call(*args) == 0

    def log_passthrough(self, args: Iterable[str]) -> int:
        return self.call("log", *args)
