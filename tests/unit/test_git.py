# tests/unit/test_git.py
"""
Git wrapper against a real repository: tag discovery (annotated and
lightweight), ancestry, and failures surfacing as CollaboratorFailure.
"""

from __future__ import annotations

import pytest

from gitbump.errors import CollaboratorFailure
from gitbump.git import Git

pytestmark = pytest.mark.integration


def test_tag_refs_peel_annotated_and_lightweight_tags(git_repo):
    first = git_repo.commit("widget 1.0.0")
    git_repo.tag("v1.0.0", "widget 1.0.0")
    second = git_repo.commit("widget 1.1.0")
    git_repo.tag("v1.1.0")
    git_repo.tag("release-candidate")

    refs = Git(cwd=git_repo.root).tag_refs()
    assert refs == [("v1.0.0", first, "widget 1.0.0"), ("v1.1.0", second, "widget 1.1.0")]


def test_rev_parse_and_ancestry(git_repo):
    git = Git(cwd=git_repo.root)
    assert git.head() is None
    a = git_repo.commit("a")
    b = git_repo.commit("b")
    assert git.head() == b
    assert git.rev_parse("nope") is None
    assert git.is_ancestor(a)
    assert not git.is_ancestor(b, a)


def test_has_changes_distinguishes_index_and_tree(git_repo):
    git = Git(cwd=git_repo.root)
    git_repo.commit("a", {"f.txt": "1\n"})
    assert not git.has_changes("HEAD")
    git_repo.write("f.txt", "2\n")
    assert git.has_changes() and git.has_changes("HEAD")
    assert not git.has_changes("--cached")
    git_repo.git("add", "f.txt")
    assert not git.has_changes()
    assert git.has_changes("--cached")


def test_diff_to_parent_is_inverse(git_repo):
    git = Git(cwd=git_repo.root)
    git_repo.commit("a", {"v.txt": "0.9\n"})
    sha = git_repo.commit("widget 1.0", {"v.txt": "1.0\n"})
    text = git.diff(sha, f"{sha}^", context=0)
    assert "-1.0\n+0.9\n" in text
    assert "--- a/v.txt" in text


def test_failed_query_raises_collaborator_failure(git_repo):
    with pytest.raises(CollaboratorFailure) as exc:
        Git(cwd=git_repo.root).output("cat-file", "-t", "does-not-exist")
    assert exc.value.returncode != 0
    assert exc.value.command[:2] == ["git", "cat-file"]


def test_missing_executable(tmp_path):
    with pytest.raises(CollaboratorFailure, match="not found"):
        Git("definitely-not-git-xyz", cwd=tmp_path).output("status")


def test_diff_keeps_carriage_returns_and_foreign_bytes(git_repo):
    git = Git(cwd=git_repo.root)
    git_repo.commit("a", {"v.bat": b"set V=caf\xe9 0.9\r\n"})
    sha = git_repo.commit("b", {"v.bat": b"set V=caf\xe9 1.0\r\n"})
    text = git.diff(sha, f"{sha}^", context=0)
    assert "-set V=caf\udce9 1.0\r\n+set V=caf\udce9 0.9\r\n" in text
    assert text.encode("utf-8", "surrogateescape").count(b"\xe9") == 2


def test_apply_sends_patch_bytes_unchanged(git_repo):
    git = Git(cwd=git_repo.root)
    git_repo.commit("a", {"v.bat": b"set V=caf\xe9 1.0\r\n"})
    patch = (
        "--- a/v.bat\n+++ b/v.bat\n@@ -1 +1 @@\n"
        "-set V=caf\udce9 1.0\r\n+set V=caf\udce9 1.1\r\n"
    )
    assert git.apply(patch)
    assert git_repo.read_bytes("v.bat") == b"set V=caf\xe9 1.1\r\n"
    assert git.has_changes("--cached")
