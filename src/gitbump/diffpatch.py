# src/gitbump/diffpatch.py
# =============================================================================
# Version-string patch synthesis over unified diffs
# -----------------------------------------------------------------------------
# The diff of the previous release commit (taken in reverse, release -> parent)
# witnesses where a version literal lives in the tree. We reuse it as a
# template: every hunk that touched the old release's version is rewritten to
# move that literal to the new version instead, everything else is dropped.
#
#   parse_diff(text)          -> list[FileDiff]
#   render_diff(files)        -> str
#   synthesize_patch(diff, old_version, new_version) -> str | None
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from .utils.logging import get_logger

log = get_logger("gitbump.diffpatch")

HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
NO_NEWLINE = "\\ No newline at end of file"

# Header lines that make a file block more than an in-place modification
_STRUCTURAL_PREFIXES = (
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
    "similarity index",
    "dissimilarity index",
)


class DiffParseError(ValueError):
    """Raised when hunk text does not agree with its @@ header."""


# -----------------------------------------------------------------------------
# Model
# -----------------------------------------------------------------------------
@dataclass
class DiffLine:
    kind: str  # " " | "-" | "+"
    text: str
    no_newline: bool = False

    def render(self) -> List[str]:
        out = [self.kind + self.text]
        if self.no_newline:
            out.append(NO_NEWLINE)
        return out


@dataclass
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: List[DiffLine] = field(default_factory=list)

    def recount(self) -> None:
        self.old_count = sum(1 for ln in self.lines if ln.kind != "+")
        self.new_count = sum(1 for ln in self.lines if ln.kind != "-")

    def header(self) -> str:
        return f"@@ -{_range(self.old_start, self.old_count)} +{_range(self.new_start, self.new_count)} @@{self.section}"

    def render(self) -> List[str]:
        out = [self.header()]
        for ln in self.lines:
            out.extend(ln.render())
        return out


@dataclass
class FileDiff:
    header: List[str] = field(default_factory=list)
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def old_path(self) -> Optional[str]:
        return _header_path(self.header, "--- ")

    @property
    def new_path(self) -> Optional[str]:
        return _header_path(self.header, "+++ ")

    def render(self) -> List[str]:
        out = list(self.header)
        for h in self.hunks:
            out.extend(h.render())
        return out


def _range(start: int, count: int) -> str:
    # git leaves out a count of one
    return str(start) if count == 1 else f"{start},{count}"


def _header_path(header: Iterable[str], marker: str) -> Optional[str]:
    for line in header:
        if line.startswith(marker):
            path = line[len(marker):].split("\t", 1)[0]
            return None if path == "/dev/null" else path
    return None


# -----------------------------------------------------------------------------
# Parsing & rendering
# -----------------------------------------------------------------------------
def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _parse_hunk(header: str, lines: List[str], pos: int) -> Tuple[Hunk, int]:
    m = HUNK_RE.match(header)
    if not m:
        raise DiffParseError(f"malformed hunk header: {header!r}")
    old_start, old_count, new_start, new_count, section = m.groups()
    hunk = Hunk(
        old_start=int(old_start),
        old_count=1 if old_count is None else int(old_count),
        new_start=int(new_start),
        new_count=1 if new_count is None else int(new_count),
        section=section,
    )
    old_left, new_left = hunk.old_count, hunk.new_count
    while old_left > 0 or new_left > 0:
        if pos >= len(lines):
            raise DiffParseError(f"hunk {header!r} ends early")
        raw = lines[pos]
        if raw.startswith("\\"):
            if hunk.lines:
                hunk.lines[-1].no_newline = True
            pos += 1
            continue
        # some tools strip the lone space of an empty context line
        kind, text = (raw[0], raw[1:]) if raw else (" ", "")
        if kind == " ":
            old_left -= 1
            new_left -= 1
        elif kind == "-":
            old_left -= 1
        elif kind == "+":
            new_left -= 1
        else:
            raise DiffParseError(f"unexpected line in hunk {header!r}: {raw!r}")
        if old_left < 0 or new_left < 0:
            raise DiffParseError(f"hunk {header!r} is longer than its header says")
        hunk.lines.append(DiffLine(kind, text))
        pos += 1
    if pos < len(lines) and lines[pos].startswith("\\"):
        if hunk.lines:
            hunk.lines[-1].no_newline = True
        pos += 1
    return hunk, pos


def parse_diff(text: str) -> List[FileDiff]:
    """Parse unified diff text (``git diff`` or plain ``diff -u``) into file blocks."""
    files: List[FileDiff] = []
    current: Optional[FileDiff] = None
    lines = _split_lines(text)
    pos = 0
    while pos < len(lines):
        line = lines[pos]
        starts_block = line.startswith("diff ") or (
            line.startswith("--- ") and (current is None or current.hunks)
        )
        if starts_block or current is None:
            current = FileDiff()
            files.append(current)
        if line.startswith("@@"):
            hunk, pos = _parse_hunk(line, lines, pos + 1)
            current.hunks.append(hunk)
            continue
        current.header.append(line)
        pos += 1
    return files


def render_diff(files: Iterable[FileDiff]) -> str:
    out: List[str] = []
    for f in files:
        out.extend(f.render())
    return "\n".join(out) + "\n" if out else ""


# -----------------------------------------------------------------------------
# Synthesis
# -----------------------------------------------------------------------------
def _occurrences(text: str, needle: str) -> Iterator[int]:
    """Start offsets of `needle` in `text`, rightmost first."""
    i = text.rfind(needle)
    while i != -1:
        yield i
        i = text.rfind(needle, 0, i + len(needle) - 1) if i > 0 else -1


def _paired_split(deleted: str, added: str, old: str) -> Optional[Tuple[str, str]]:
    for i in _occurrences(deleted, old):
        prefix, suffix = deleted[:i], deleted[i + len(old):]
        if (
            len(added) >= len(prefix) + len(suffix)
            and added.startswith(prefix)
            and added.endswith(suffix)
        ):
            return prefix, suffix
    return None


def _isolated_split(deleted: str, old: str) -> Optional[Tuple[str, str]]:
    i = deleted.rfind(old)
    if i == -1:
        return None
    return deleted[:i], deleted[i + len(old):]


def _rewrite_hunk(hunk: Hunk, old: str, new: str) -> Optional[Hunk]:
    """
    Rewrite `hunk` so it only moves `old` to `new`; None when it never touched `old`.

    Deletions that are not substituted turn into context and unrelated
    additions are dropped, so the result applies to a tree that still holds
    the release's content.
    """
    src = hunk.lines
    out: List[DiffLine] = []
    substituted = False
    i = 0
    while i < len(src):
        line = src[i]
        nxt = src[i + 1] if i + 1 < len(src) else None
        if line.kind == "-" and nxt is not None and nxt.kind == "+":
            split = _paired_split(line.text, nxt.text, old)
            if split:
                prefix, suffix = split
                out.append(DiffLine("-", line.text, line.no_newline))
                out.append(DiffLine("+", prefix + new + suffix, line.no_newline))
                substituted = True
                i += 2
                continue
        elif (
            line.kind == "-"
            and (nxt is None or nxt.kind == " ")
            and (i == 0 or (i == 1 and src[0].kind == " "))
        ):
            split = _isolated_split(line.text, old)
            if split:
                prefix, suffix = split
                out.append(DiffLine("-", line.text, line.no_newline))
                out.append(DiffLine("+", prefix + new + suffix, line.no_newline))
                substituted = True
                i += 1
                continue
        if line.kind == "-":
            out.append(DiffLine(" ", line.text, line.no_newline))
        elif line.kind == " ":
            out.append(DiffLine(" ", line.text, line.no_newline))
        i += 1
    if not substituted:
        return None
    rewritten = Hunk(hunk.old_start, 0, hunk.old_start, 0, hunk.section, out)
    rewritten.recount()
    return rewritten


def _in_place_header(f: FileDiff) -> List[str]:
    """Header for a block that modifies its pre-image path in place."""
    if not any(ln.startswith(_STRUCTURAL_PREFIXES) for ln in f.header):
        return list(f.header)
    old = f.old_path or f.new_path or ""
    path = old[2:] if old.startswith(("a/", "b/")) else old
    log.debug("rewriting header of %s as an in-place modification", path)
    return [f"diff --git a/{path} b/{path}", f"--- a/{path}", f"+++ b/{path}"]


def synthesize_patch(diff: str, old_version: str, new_version: str) -> Optional[str]:
    """
    Build a patch moving the version literal from `old_version` to `new_version`.

    `diff` is the inverse diff of the previous release (release commit to its
    parent); its hunks locate the literal. Returns None when no hunk of `diff`
    carries `old_version`.
    """
    if not old_version:
        raise ValueError("old_version must not be empty")
    kept: List[FileDiff] = []
    for f in parse_diff(diff):
        hunks = [h for h in (_rewrite_hunk(h, old_version, new_version) for h in f.hunks) if h is not None]
        if not hunks:
            continue
        offset = 0
        for h in hunks:
            h.new_start = h.old_start + offset
            offset += h.new_count - h.old_count
        kept.append(FileDiff(_in_place_header(f), hunks))
        log.debug("version literal found in %s (%d hunk(s))", f.old_path, len(hunks))
    if not kept:
        log.info("no hunk mentions %s; nothing to patch", old_version)
        return None
    return render_diff(kept)
