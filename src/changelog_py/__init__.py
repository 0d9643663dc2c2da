"""changelog-py: changelogs from git history driven by declarative commit rules."""

from __future__ import annotations

__version__ = "0.1.0"
