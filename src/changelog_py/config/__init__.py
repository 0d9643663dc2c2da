"""Configuration management for changelog-py."""

from __future__ import annotations

from changelog_py.config.loader import load_config
from changelog_py.config.models import (
    ChangelogConfig,
    ChangelogPyConfig,
    CommitParserConfig,
    CommitPreprocessorConfig,
    GitConfig,
    GroupConfig,
)

__all__ = [
    "ChangelogConfig",
    "ChangelogPyConfig",
    "CommitParserConfig",
    "CommitPreprocessorConfig",
    "GitConfig",
    "GroupConfig",
    "load_config",
]
