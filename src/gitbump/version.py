# src/gitbump/version.py
"""
Dot-separated textual version numbers.

Components are kept as text (``"3"``, ``"0rc1"``, ``"beta"``) and are only
ever changed by the increment rules below:

    >>> str(Version.parse("1.2.3rc4").bumped("point"))
    '1.2.4'
    >>> str(Version.parse("1.2.3-rc4").bumped())
    '1.2.3-rc5'
"""

from __future__ import annotations

import dataclasses
import re
from typing import Optional, Tuple

from .errors import InitialReleaseError, UsageError

# Increment keywords -> component index
KEYWORDS = {"major": 0, "minor": 1, "point": 2}

EXPLICIT_RE = re.compile(r"^v?(\d.*)", re.DOTALL)
LEADING_DIGITS_RE = re.compile(r"^(\d+).*")


def succ(text: str) -> str:
    """
    Odometer-style successor of `text`.

    The rightmost ASCII alphanumeric character is incremented; ``9``, ``z`` and
    ``Z`` roll over to ``0``, ``a`` and ``A`` and carry into the next
    alphanumeric character to the left, skipping separators. A carry out of the
    leftmost alphanumeric character inserts ``1``, ``a`` or ``A`` in front of it.
    Text without alphanumerics is returned unchanged.
    """
    chars = list(text)
    positions = [i for i, c in enumerate(chars) if c.isascii() and c.isalnum()]
    if not positions:
        return text
    carry = ""
    for i in reversed(positions):
        c = chars[i]
        if c == "9":
            chars[i], carry = "0", "1"
        elif c == "z":
            chars[i], carry = "a", "a"
        elif c == "Z":
            chars[i], carry = "A", "A"
        else:
            chars[i] = chr(ord(c) + 1)
            return "".join(chars)
    chars.insert(positions[0], carry)
    return "".join(chars)


@dataclasses.dataclass(frozen=True)
class Version:
    """Ordered textual components of a version number."""

    components: Tuple[str, ...]

    @classmethod
    def parse(cls, s: str) -> "Version":
        return cls(tuple(s.split(".")))

    def __str__(self) -> str:
        return ".".join(self.components)

    # ---- bump ops ----
    def bumped_at(self, index: int) -> "Version":
        """
        Bump the component at `index` and zero out everything less significant.

        The bumped component loses any non-numeric suffix first; later
        components become ``"0"`` when they start with a digit and are dropped
        otherwise. Missing components up to `index` count as ``"0"``.
        """
        if index < 0:
            raise ValueError(f"component index must be >= 0, got {index}")
        parts = list(self.components)
        while len(parts) <= index:
            parts.append("0")
        parts[index] = succ(LEADING_DIGITS_RE.sub(r"\1", parts[index]))
        for i in range(len(parts) - 1, index, -1):
            if parts[i][:1].isdigit():
                parts[i] = "0"
            else:
                del parts[i]
        return Version(tuple(parts))

    def bumped_last(self) -> "Version":
        parts = list(self.components)
        parts[-1] = succ(parts[-1])
        return Version(tuple(parts))

    def bumped(self, keyword: Optional[str] = None) -> "Version":
        """Bump by keyword (major|minor|point), or the last component for None."""
        if keyword is None:
            return self.bumped_last()
        if keyword not in KEYWORDS:
            raise UsageError(f"Unrecognized version increment {keyword}.")
        return self.bumped_at(KEYWORDS[keyword])


def next_version(request: Optional[str], latest: Optional[Version]) -> Version:
    """
    Resolve the version to release.

    `request` is an explicit version (``1.4.0`` or ``v1.4.0``), one of the
    KEYWORDS, or None for the default least-significant bump of `latest`.
    """
    if request is not None:
        m = EXPLICIT_RE.match(request)
        if m:
            return Version.parse(m.group(1))
        if request not in KEYWORDS:
            raise UsageError(f"Unrecognized version increment {request}.")
    if latest is None:
        raise InitialReleaseError("Appears to be initial release.  Version number required.")
    return latest.bumped(request)
