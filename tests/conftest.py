# tests/conftest.py
"""
Global pytest fixtures & test wiring for git-bump.

Design goals
------------
- Hermetic runs: real-git tests get their own HOME, identity and editor, and
  never read the user's or the system's git config.
- Deterministic history: fixture commits carry explicit, increasing dates so
  tag ordering by commit date is stable.
- Fast unit tests through an in-memory git collaborator (`FakeGit`).
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import pytest

# -----------------------------------------------------------------------------
# In-memory git collaborator
# -----------------------------------------------------------------------------


@dataclass
class FakeGit:
    """Scripted stand-in for gitbump.git.Git; records mutating calls."""

    refs: List[Tuple[str, str, str]] = field(default_factory=list)
    ancestors: Set[str] = field(default_factory=set)
    object_types: Dict[str, str] = field(default_factory=dict)
    tag_objects: Dict[str, str] = field(default_factory=dict)
    bodies: Dict[str, str] = field(default_factory=dict)
    subjects: Dict[str, str] = field(default_factory=dict)
    diffs: Dict[Tuple[str, int], str] = field(default_factory=dict)
    parents: Set[str] = field(default_factory=set)
    existing: Set[str] = field(default_factory=set)
    head_sha: Optional[str] = "HEADSHA"
    dirty_head: bool = False
    unstaged: bool = False
    staged: bool = False
    apply_ok: bool = True
    commit_ok: bool = True
    tag_ok: bool = True
    range_log: str = "* One.\n* Two."
    cwd: Optional[Path] = None
    calls: List[Tuple] = field(default_factory=list)

    # queries
    def tag_refs(self):
        self.calls.append(("tag_refs",))
        return list(self.refs)

    def is_ancestor(self, commit: str, head: str = "HEAD") -> bool:
        return commit in self.ancestors

    def object_type(self, name: str) -> str:
        return self.object_types.get(name, "commit")

    def tag_object(self, name: str) -> str:
        return self.tag_objects[name]

    def log_format(self, ref: str, fmt: str) -> str:
        if fmt == "%b":
            return self.bodies.get(ref, "")
        if fmt == "%s":
            return self.subjects.get(ref, "")
        return f"{self.subjects.get(ref, '')}\n\n{self.bodies.get(ref, '')}".strip()

    def log_range(self, rev_range: str, fmt: str) -> str:
        self.calls.append(("log_range", rev_range, fmt))
        return self.range_log

    def rev_parse(self, ref: str) -> Optional[str]:
        if ref.endswith("^"):
            return "PARENT" if ref[:-1] in self.parents else None
        return ref if ref in self.existing else None

    def head(self) -> Optional[str]:
        return self.head_sha

    def current_branch(self) -> str:
        return "main"

    def diff(self, a: str, b: str, *, context: int = 1) -> str:
        self.calls.append(("diff", a, b, context))
        return self.diffs[(a, context)]

    def has_changes(self, *args: str) -> bool:
        if args == ("HEAD",):
            return self.dirty_head
        if args == ("--cached",):
            return self.staged
        return self.unstaged

    # mutations
    def apply(self, patch: str) -> bool:
        self.calls.append(("apply", patch))
        return self.apply_ok

    def commit(self, message_file, *, edit: bool = True, verbose: bool = True) -> bool:
        self.calls.append(("commit", Path(message_file).read_text(encoding="utf-8"), edit, verbose))
        return self.commit_ok

    def amend(self, *, edit: bool = True) -> bool:
        self.calls.append(("amend", edit))
        return self.commit_ok

    def reset_hard(self) -> None:
        self.calls.append(("reset_hard",))

    def tag(self, name: str, message: str, *, sign: bool, force: bool = True) -> bool:
        self.calls.append(("tag", name, message, sign))
        return self.tag_ok

    def log_passthrough(self, args: Iterable[str]) -> int:
        self.calls.append(("log", list(args)))
        return 0

    def called(self, name: str) -> List[Tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture()
def fake_git(tmp_path: Path) -> FakeGit:
    return FakeGit(cwd=tmp_path)


# -----------------------------------------------------------------------------
# Real git repositories
# -----------------------------------------------------------------------------

BASE_DATE = 1_600_000_000


class GitRepo:
    """Throw-away repository with helpers to build release histories."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._tick = 0

    def git(self, *args: str, env: Optional[Dict[str, str]] = None) -> str:
        cp = subprocess.run(
            ["git", *args],
            cwd=str(self.root),
            env={**os.environ, **(env or {})},
            capture_output=True,
            text=True,
        )
        if cp.returncode != 0:
            raise RuntimeError(f"git {' '.join(args)} failed:\n{cp.stderr}")
        return cp.stdout

    def write(self, path: str, content: Union[str, bytes]) -> None:
        p = self.root / path
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            p.write_bytes(content)
        else:
            p.write_text(content, encoding="utf-8")

    def commit(self, message: str, files: Optional[Dict[str, Union[str, bytes]]] = None) -> str:
        for path, text in (files or {}).items():
            self.write(path, text)
        self.git("add", "-A")
        self._tick += 60
        date = f"{BASE_DATE + self._tick} +0000"
        self.git(
            "commit", "-q", "--allow-empty", "-m", message,
            env={"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date},
        )
        return self.git("rev-parse", "HEAD").strip()

    def tag(self, name: str, message: Optional[str] = None, ref: str = "HEAD") -> None:
        if message is None:
            self.git("tag", name, ref)
        else:
            self.git("tag", "-a", name, "-m", message, ref)

    def read(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8")

    def read_bytes(self, path: str) -> bytes:
        return (self.root / path).read_bytes()

    def subject(self, ref: str = "HEAD") -> str:
        return self.git("log", "-1", "--pretty=format:%s", ref)

    def body(self, ref: str = "HEAD") -> str:
        return self.git("log", "-1", "--pretty=format:%b", ref)


@pytest.fixture()
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Release Bot")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "bot@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Release Bot")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "bot@example.com")
    monkeypatch.setenv("GIT_EDITOR", "true")
    monkeypatch.setenv("GIT_PAGER", "cat")
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)
    return home


@pytest.fixture()
def git_repo(tmp_path: Path, git_env: Path, monkeypatch: pytest.MonkeyPatch) -> GitRepo:
    root = tmp_path / "widget"
    root.mkdir()
    repo = GitRepo(root)
    repo.git("init", "-q")
    repo.git("config", "commit.gpgsign", "false")
    repo.git("config", "tag.gpgsign", "false")
    monkeypatch.chdir(root)
    return repo


# -----------------------------------------------------------------------------
# CLI helpers
# -----------------------------------------------------------------------------

@pytest.fixture()
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
