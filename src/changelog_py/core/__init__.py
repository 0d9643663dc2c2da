"""Core business logic for changelog-py.

This module contains the pipeline stages:
- Rule set compilation from configuration
- Commit message preprocessing and conventional commit parsing
- Commit classification with first-match-wins parser rules
- Segmentation of history into releases by tags
- Release assembly and rendering
"""

from __future__ import annotations

from changelog_py.core.changelog import build_changelog, generate_changelog, process_release
from changelog_py.core.classify import Classification, Outcome, classify, classify_commits
from changelog_py.core.commits import (
    Commit,
    ConventionalCommit,
    Footer,
    extract_body,
    parse_conventional,
)
from changelog_py.core.preprocess import preprocess, preprocess_message
from changelog_py.core.release import ReleaseContext, assemble, sort_commits
from changelog_py.core.rules import Group, ParserRule, Policies, PreprocessRule, RuleSet
from changelog_py.core.tags import Release, Tag, order_commits, segment
from changelog_py.core.template import ChangelogRenderer

__all__ = [
    # Rules
    "Group",
    "ParserRule",
    "Policies",
    "PreprocessRule",
    "RuleSet",
    # Commits
    "Commit",
    "ConventionalCommit",
    "Footer",
    "extract_body",
    "parse_conventional",
    "preprocess",
    "preprocess_message",
    # Classification
    "Classification",
    "Outcome",
    "classify",
    "classify_commits",
    # Releases
    "Release",
    "ReleaseContext",
    "Tag",
    "assemble",
    "order_commits",
    "segment",
    "sort_commits",
    # Changelog
    "ChangelogRenderer",
    "build_changelog",
    "generate_changelog",
    "process_release",
]
