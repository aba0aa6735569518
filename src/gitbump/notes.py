# src/gitbump/notes.py
"""Release notes helpers derived from a release commit's body."""

from __future__ import annotations

import re
from typing import Optional

# First line plus continuation lines indented by exactly two spaces
LEADING_RE = re.compile(r"(?:\n  |.)*")
# bullet markers | text | optional trailing period
SHAPE_RE = re.compile(r"\A([-* ]*)(.*?)(\.?)\Z", re.DOTALL)


def leading_paragraph(body: str) -> str:
    return LEADING_RE.match(body).group(0)


def format_summary(body: Optional[str]) -> Optional[str]:
    """
    One-line summary of a commit body.

    ``"* Fixed the parser.\\n  Again."`` becomes ``"Fixed the parser. Again"``.
    Returns None for an empty body or one without text.
    """
    if not body:
        return None
    m = SHAPE_RE.match(leading_paragraph(body))
    text = " ".join(m.group(2).split())
    return text or None


def changelog_template(body: Optional[str]) -> Optional[str]:
    """
    A ``git log --pretty=format:`` template shaped like `body`'s first entry.

    The bullet prefix and the trailing period survive, the text becomes
    ``%s``: ``"- Added x."`` -> ``"- %s."``.
    """
    if not body:
        return None
    m = SHAPE_RE.match(leading_paragraph(body))
    return f"{m.group(1)}%s{m.group(3)}"
