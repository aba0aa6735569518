# src/gitbump/releases.py
"""
Release history discovered from ``v<digit>*`` tags.

A release commit's subject reads ``<name> <version>`` (for example
``widget 1.4.0``); the name is reused for the next release commit. Everything
else about a release (tag kind, tag message, commit body, inverse diff) is
read from git on first use and cached on the instance.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Optional

from .git import Git
from .notes import changelog_template, format_summary
from .utils.logging import get_logger
from .version import Version

log = get_logger("gitbump.releases")

SUBJECT_RE = re.compile(r"^(.*) (\d\S*)\s*$")
SIGNATURE_MARKERS = ("\n-----BEGIN PGP", "\n-----BEGIN SSH SIGNATURE")
SIGNATURE_RE = re.compile(r"\n-----BEGIN (?:PGP|SSH) .*", re.DOTALL)


@dataclass(frozen=True)
class Release:
    tag: str
    sha1: str
    name: Optional[str]
    version: Version
    git: Git = field(repr=False, compare=False)
    _diffs: Dict[int, Optional[str]] = field(default_factory=dict, init=False, repr=False, compare=False)

    @classmethod
    def from_ref(cls, git: Git, tag: str, sha1: str, subject: str) -> "Release":
        m = SUBJECT_RE.match(subject)
        if m:
            return cls(tag, sha1, m.group(1), Version.parse(m.group(2)), git)
        # no "<name> <version>" subject: fall back to the tag name
        return cls(tag, sha1, None, Version.parse(tag[1:]), git)

    @cached_property
    def tag_type(self) -> str:
        return self.git.object_type(self.tag)

    @cached_property
    def tag_message(self) -> Optional[str]:
        if self.tag_type != "tag":
            return None
        return self.git.tag_object(self.tag).split("\n\n", 1)[-1]

    @property
    def is_signed(self) -> bool:
        message = self.tag_message or ""
        return any(marker in message for marker in SIGNATURE_MARKERS)

    @property
    def has_body(self) -> bool:
        return "\n\n" in SIGNATURE_RE.sub("", self.tag_message or "")

    @cached_property
    def body(self) -> str:
        return self.git.log_format(self.sha1, "%b")

    @property
    def formatted_summary(self) -> Optional[str]:
        return format_summary(self.body)

    @property
    def changelog_format(self) -> Optional[str]:
        return changelog_template(self.body)

    def inverse_diff(self, context: int = 1) -> Optional[str]:
        """Diff from the release commit back to its parent; None for a root commit."""
        cache = self._diffs
        if context not in cache:
            if self.git.rev_parse(f"{self.sha1}^") is None:
                cache[context] = None
            else:
                cache[context] = self.git.diff(self.sha1, f"{self.sha1}^", context=context)
        return cache[context]


class ReleaseHistory:
    """Releases ordered by tagged commit date, oldest first."""

    def __init__(self, git: Git) -> None:
        self.git = git

    @cached_property
    def releases(self) -> List[Release]:
        out = [Release.from_ref(self.git, *ref) for ref in self.git.tag_refs()]
        log.debug("found %d release tag(s)", len(out))
        return out

    @cached_property
    def latest(self) -> Optional[Release]:
        """Newest release whose commit is an ancestor of HEAD."""
        for release in reversed(self.releases):
            if self.git.is_ancestor(release.sha1, "HEAD"):
                return release
            log.debug("skipping %s: not an ancestor of HEAD", release.tag)
        return None

    def find(self, target: str) -> Optional[Release]:
        """Release whose version text or tag name equals `target`."""
        for release in self.releases:
            if str(release.version) == target or release.tag == target:
                return release
        return None
