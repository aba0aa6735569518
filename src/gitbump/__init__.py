"""
git-bump — release tagging for git work trees.

Finds the latest ``v<version>`` release reachable from HEAD, picks the next
version, rewrites the version literal the previous release touched, then
commits and tags.

Exposes:
    __version__ : str
        Package version identifier.
    __all__ : list[str]
        Public submodules.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "diffpatch",
    "notes",
    "release",
    "releases",
    "version",
]
