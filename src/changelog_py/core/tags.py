"""Segmentation of history into releases.

History is first put into a linear order, either by committer date or
topologically along parent links. Surviving tags then cut that order
into releases: the release of tag ``T`` holds every commit after the
previous surviving tag, up to and including the commit ``T`` points at.
Commits after the last surviving tag form the unreleased release.

Tags are filtered before they can become boundaries:

- tags not matching ``tag_pattern`` and tags matching ``ignore_tags``
  are transparent and never mentioned again;
- tags matching ``skip_tags`` are not boundaries either, but the
  release that absorbs their commits records their names.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from changelog_py.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime

    from changelog_py.core.commits import Commit
    from changelog_py.core.rules import Policies

log = get_logger(__name__)


@dataclass(frozen=True)
class Tag:
    """A named pointer at a commit; ``index`` is its declaration order."""

    name: str
    commit_id: str
    index: int = 0


@dataclass(frozen=True)
class Release:
    """A contiguous span of history.

    Attributes:
        version: Tag name, or None for unreleased commits
        timestamp: Timestamp of the tagged commit, or None for unreleased
        commits: Raw commits of the release, oldest first
        previous: Version of the release before this one
        absorbed_tags: Skipped tags whose commits were folded into this release
    """

    version: str | None
    timestamp: datetime | None
    commits: tuple[Commit, ...] = ()
    previous: str | None = None
    absorbed_tags: tuple[str, ...] = ()

    @property
    def is_unreleased(self) -> bool:
        return self.version is None


@dataclass
class _Node:
    commit: Commit
    position: int
    children: list[int] = field(default_factory=list)
    pending_parents: int = 0


def _commit_time(commit: Commit) -> datetime:
    return commit.committed or commit.timestamp


def order_commits(commits: Sequence[Commit], *, topo_order: bool = False) -> list[Commit]:
    """Put commits into the linear order used for segmentation.

    Args:
        commits: Commits in the order the history reader produced them
        topo_order: Order by ancestry (parents first) instead of by commit date

    Returns:
        Commits, oldest first by committer time (authoring time when the
        committer time is unknown). Ties are broken by input position.
    """
    if not topo_order:
        indexed = sorted(enumerate(commits), key=lambda item: (_commit_time(item[1]), item[0]))
        return [commit for _, commit in indexed]

    arena = [_Node(commit=commit, position=i) for i, commit in enumerate(commits)]
    by_id = {node.commit.id: i for i, node in enumerate(arena)}

    for i, node in enumerate(arena):
        for parent_id in node.commit.parents:
            parent = by_id.get(parent_id)
            if parent is None or parent == i:
                continue
            arena[parent].children.append(i)
            node.pending_parents += 1

    ready = [
        (_commit_time(node.commit), node.position) for node in arena if node.pending_parents == 0
    ]
    heapq.heapify(ready)

    ordered: list[Commit] = []
    while ready:
        _, i = heapq.heappop(ready)
        ordered.append(arena[i].commit)
        for child in arena[i].children:
            arena[child].pending_parents -= 1
            if arena[child].pending_parents == 0:
                heapq.heappush(ready, (_commit_time(arena[child].commit), child))

    if len(ordered) != len(arena):
        # Parent links form a cycle; keep the remaining commits in input order.
        emitted = {id(commit) for commit in ordered}
        ordered.extend(node.commit for node in arena if id(node.commit) not in emitted)

    return ordered


def normalize_tags(tags: Mapping[str, str] | Iterable[Tag]) -> list[Tag]:
    """Accept either a ``{name: commit_id}`` mapping or Tag objects."""
    if hasattr(tags, "items"):
        return [Tag(name, commit_id, index) for index, (name, commit_id) in enumerate(tags.items())]
    return list(tags)


def segment(
    commits: Sequence[Commit],
    tags: Mapping[str, str] | Iterable[Tag],
    policies: Policies,
) -> list[Release]:
    """Partition history into releases.

    Args:
        commits: Every commit in history
        tags: Tag names bound to commit ids, in declaration order
        policies: Tag pattern, skip/ignore patterns and ordering policy

    Returns:
        Releases, oldest first; the unreleased release, if any, is last
    """
    ordered = order_commits(commits, topo_order=policies.topo_order)
    if not ordered:
        return []

    position = {commit.id: i for i, commit in enumerate(ordered)}
    boundaries: list[tuple[int, int, Tag]] = []
    skipped: list[tuple[int, int, Tag]] = []

    for tag in normalize_tags(tags):
        pos = position.get(tag.commit_id)
        if pos is None:
            log.debug("tag points outside history", tag=tag.name, commit=tag.commit_id)
            continue
        if not policies.matches_tag_pattern(tag.name) or policies.is_ignored_tag(tag.name):
            continue
        if policies.is_skipped_tag(tag.name):
            skipped.append((pos, tag.index, tag))
        else:
            boundaries.append((pos, tag.index, tag))

    boundaries.sort(key=lambda item: (item[0], item[1]))
    skipped.sort(key=lambda item: (item[0], item[1]))

    def absorbed(start: int, end: int) -> tuple[str, ...]:
        return tuple(tag.name for pos, _, tag in skipped if start <= pos < end)

    releases: list[Release] = []
    start = 0
    previous: str | None = None

    for pos, _, tag in boundaries:
        end = pos + 1
        span = ordered[start:end] if end > start else []
        releases.append(
            Release(
                version=tag.name,
                timestamp=ordered[pos].timestamp,
                commits=tuple(span),
                previous=previous,
                absorbed_tags=absorbed(start, end),
            )
        )
        previous = tag.name
        start = max(start, end)

    if start < len(ordered):
        releases.append(
            Release(
                version=None,
                timestamp=None,
                commits=tuple(ordered[start:]),
                previous=previous,
                absorbed_tags=absorbed(start, len(ordered)),
            )
        )

    log.debug(
        "segmented history",
        commits=len(ordered),
        releases=len(releases),
        skipped_tags=len(skipped),
    )
    return releases
