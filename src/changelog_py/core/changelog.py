"""Changelog generation pipeline.

History is segmented into releases first. Each release is then
processed on its own (preprocess, classify, assemble), optionally on a
thread pool since releases share nothing but the read-only rule set.
The resulting contexts are rendered with :class:`ChangelogRenderer`.
"""

from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from changelog_py.core.classify import classify_commits
from changelog_py.core.release import assemble
from changelog_py.core.rules import RuleSet
from changelog_py.core.tags import segment
from changelog_py.core.template import ChangelogRenderer
from changelog_py.exceptions import GenerationCancelledError
from changelog_py.logging import get_logger

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable, Mapping, Sequence

    from changelog_py.config.models import ChangelogPyConfig
    from changelog_py.core.commits import Commit
    from changelog_py.core.release import ReleaseContext
    from changelog_py.core.tags import Release, Tag
    from changelog_py.vcs.git import GitRepository

log = get_logger(__name__)


def process_release(
    release: Release,
    rules: RuleSet,
    cancel: threading.Event | None = None,
) -> ReleaseContext:
    """Classify and assemble the commits of one release.

    Args:
        release: Release produced by segmentation
        rules: Compiled rule set
        cancel: Checked before any work starts

    Returns:
        The release context

    Raises:
        GenerationCancelledError: If ``cancel`` is set
    """
    if cancel is not None and cancel.is_set():
        raise GenerationCancelledError(
            f"Cancelled before processing release {release.version or 'unreleased'}"
        )

    commits = classify_commits(release.commits, rules)
    context = assemble(release, commits, rules)
    log.debug(
        "processed release",
        version=release.version or "unreleased",
        commits=len(release.commits),
        kept=len(commits),
        groups=len(context.groups),
    )
    return context


def select_releases(
    releases: list[Release],
    *,
    unreleased_only: bool = False,
    latest_only: bool = False,
    tag: str | None = None,
    now: datetime | None = None,
) -> list[Release]:
    """Narrow and relabel segmented releases.

    Args:
        releases: Releases, oldest first
        unreleased_only: Keep only the unreleased release
        latest_only: Keep only the newest tagged release
        tag: Version to give the unreleased release
        now: Timestamp for the relabelled release (defaults to current UTC time)

    Returns:
        The selected releases, oldest first
    """
    if unreleased_only:
        releases = [r for r in releases if r.is_unreleased]
    elif latest_only:
        tagged = [r for r in releases if not r.is_unreleased]
        releases = tagged[-1:]

    if tag is not None:
        releases = [
            dataclasses.replace(r, version=tag, timestamp=now or datetime.now(UTC))
            if r.is_unreleased
            else r
            for r in releases
        ]
    return releases


def build_changelog(
    commits: Sequence[Commit],
    tags: Mapping[str, str] | Iterable[Tag],
    rules: RuleSet,
    *,
    workers: int = 1,
    cancel: threading.Event | None = None,
    unreleased_only: bool = False,
    latest_only: bool = False,
    tag: str | None = None,
) -> list[ReleaseContext]:
    """Run the full pipeline over a commit history.

    Args:
        commits: Every commit in history
        tags: Tag names bound to commit ids, in declaration order
        rules: Compiled rule set
        workers: Number of threads processing releases
        cancel: Event checked before each release is processed
        unreleased_only: Only produce the unreleased release
        latest_only: Only produce the newest tagged release
        tag: Version to give the unreleased release

    Returns:
        One context per release, oldest first

    Raises:
        GenerationCancelledError: If ``cancel`` is set before all releases are done
    """
    releases = select_releases(
        segment(commits, tags, rules.policies),
        unreleased_only=unreleased_only,
        latest_only=latest_only,
        tag=tag,
    )

    if workers <= 1 or len(releases) <= 1:
        return [process_release(release, rules, cancel) for release in releases]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda r: process_release(r, rules, cancel), releases))


def generate_changelog(
    repo: GitRepository,
    config: ChangelogPyConfig,
    *,
    unreleased_only: bool = False,
    latest_only: bool = False,
    tag: str | None = None,
    workers: int = 1,
    include_header: bool = True,
    include_footer: bool = True,
) -> str:
    """Generate changelog text for a repository.

    Args:
        repo: Git repository to read history from
        config: Changelog configuration
        unreleased_only: Only render unreleased changes
        latest_only: Only render the newest tagged release
        tag: Version to give unreleased changes
        workers: Number of threads processing releases
        include_header: Render the configured header
        include_footer: Render the configured footer

    Returns:
        Rendered changelog content

    Raises:
        ConfigError: If the rules in the configuration are invalid
        GitError: If the history can't be read
        TemplateError: If rendering fails
    """
    rules = RuleSet.from_config(config.git)
    renderer = ChangelogRenderer(config.changelog)

    contexts = build_changelog(
        repo.commits(),
        repo.tags(),
        rules,
        workers=workers,
        unreleased_only=unreleased_only,
        latest_only=latest_only,
        tag=tag,
    )
    log.info("generated changelog", releases=len(contexts))
    return renderer.render(
        contexts,
        include_header=include_header,
        include_footer=include_footer,
    )
