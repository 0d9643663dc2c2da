"""Release assembly.

Turns one release's classified commits into the context handed to the
renderer: groups in priority order, commits sorted inside each group,
and commits without a group kept aside.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from changelog_py.core.commits import Commit
    from changelog_py.core.rules import RuleSet
    from changelog_py.core.tags import Release


@dataclass
class ReleaseContext:
    """Everything the renderer needs for one release."""

    version: str | None
    timestamp: datetime | None
    groups: dict[str, list[Commit]] = field(default_factory=dict)
    ungrouped: list[Commit] = field(default_factory=list)
    previous: str | None = None
    absorbed_tags: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.groups and not self.ungrouped

    @property
    def commits(self) -> list[Commit]:
        """All commits in render order."""
        return [c for commits in self.groups.values() for c in commits] + self.ungrouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "previous": self.previous,
            "absorbed_tags": list(self.absorbed_tags),
            "groups": {
                label: [commit.to_dict() for commit in commits]
                for label, commits in self.groups.items()
            },
            "ungrouped": [commit.to_dict() for commit in self.ungrouped],
        }


def sort_commits(commits: Iterable[Commit], direction: str = "oldest") -> list[Commit]:
    """Sort commits by timestamp, breaking ties by id.

    Args:
        commits: Commits to sort
        direction: ``"newest"`` for descending timestamps, ``"oldest"`` for ascending

    Returns:
        Sorted list; equal timestamps are always in ascending id order
    """
    by_id = sorted(commits, key=lambda c: c.id)
    return sorted(by_id, key=lambda c: c.timestamp, reverse=direction == "newest")


def assemble(release: Release, commits: Iterable[Commit], rules: RuleSet) -> ReleaseContext:
    """Group and order the classified commits of a release.

    Declared groups come first in priority order, then undeclared groups
    (such as the fallback group for protected breaking commits) by label.
    Commits without a group end up in ``ungrouped``.

    Args:
        release: The release produced by segmentation
        commits: Its classified, filtered commits
        rules: Rule set providing group priorities and sort direction

    Returns:
        The release context
    """
    buckets: dict[str, list[Commit]] = {}
    ungrouped: list[Commit] = []
    for commit in commits:
        if commit.group is None:
            ungrouped.append(commit)
        else:
            buckets.setdefault(commit.group, []).append(commit)

    def priority(label: str) -> tuple[int, tuple[int, int | str, int] | str]:
        order = rules.group_order(label)
        return (0, order) if order is not None else (1, label)

    direction = rules.policies.sort_commits
    groups = {
        label: sort_commits(buckets[label], direction) for label in sorted(buckets, key=priority)
    }

    return ReleaseContext(
        version=release.version,
        timestamp=release.timestamp,
        groups=groups,
        ungrouped=sort_commits(ungrouped, direction),
        previous=release.previous,
        absorbed_tags=release.absorbed_tags,
    )
