"""Shared fixtures for changelog-py tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import git
import pytest

from changelog_py.config.models import CommitParserConfig, GitConfig
from changelog_py.core.commits import Commit
from changelog_py.core.rules import RuleSet

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def make_commit() -> Callable[..., Commit]:
    """Factory for commits; ``minutes`` offsets the timestamp from BASE_TIME."""

    def factory(id: str, message: str, minutes: int = 0, **kwargs: object) -> Commit:
        return Commit(
            id=id,
            message=message,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
            **kwargs,
        )

    return factory


@pytest.fixture
def feat_commit(make_commit: Callable[..., Commit]) -> Commit:
    return make_commit("feat123", "feat: add user authentication", 1)


@pytest.fixture
def fix_commit(make_commit: Callable[..., Commit]) -> Commit:
    return make_commit("fix456", "fix(core): handle null response", 2)


@pytest.fixture
def breaking_commit(make_commit: Callable[..., Commit]) -> Commit:
    return make_commit("break789", "feat(api)!: redesign endpoints", 3)


@pytest.fixture
def sample_commits(make_commit: Callable[..., Commit]) -> list[Commit]:
    """A small history mixing conventional and free-form messages."""
    return [
        make_commit("a1", "feat: add login", 1),
        make_commit("a2", "fix(auth): reject expired tokens", 2),
        make_commit("a3", "docs: describe configuration", 3),
        make_commit("a4", "chore(deps): bump pydantic", 4),
        make_commit("a5", "Updated the readme file", 5),
        make_commit("a6", "feat(api)!: drop v1 endpoints", 6),
    ]


@pytest.fixture
def default_parsers() -> list[CommitParserConfig]:
    """Parser rules modelled on a typical cliff.toml."""
    return [
        CommitParserConfig(message="^feat", group="Features"),
        CommitParserConfig(message="^fix", group="Bug Fixes"),
        CommitParserConfig(message="^doc", group="Documentation"),
        CommitParserConfig(message=r"^chore\(deps\)", skip=True),
        CommitParserConfig(message="^chore", group="Miscellaneous Tasks"),
    ]


@pytest.fixture
def rules(default_parsers: list[CommitParserConfig]) -> RuleSet:
    return RuleSet.from_config(GitConfig(commit_parsers=default_parsers))


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Callable[..., git.Repo]:
    """Create a repository and return a helper that adds commits.

    ``commit(message, minutes, tag=None, author_minutes=None)`` writes a
    file, commits it at a fixed date and optionally tags the new commit.
    ``author_minutes`` gives the author date when it differs from the
    commit date, as it does for rebased commits.
    """
    repo = git.Repo.init(tmp_path)
    author = git.Actor("Test", "test@test.com")
    counter = {"n": 0}

    def date(offset: int) -> str:
        return f"{int((BASE_TIME + timedelta(minutes=offset)).timestamp())} +0000"

    def commit(
        message: str,
        minutes: int = 0,
        tag: str | None = None,
        author_minutes: int | None = None,
    ) -> str:
        counter["n"] += 1
        path = tmp_path / f"file{counter['n']}.txt"
        path.write_text(message)
        repo.index.add([str(path)])
        sha = repo.index.commit(
            message,
            author=author,
            committer=author,
            author_date=date(minutes if author_minutes is None else author_minutes),
            commit_date=date(minutes),
        ).hexsha
        if tag:
            repo.create_tag(tag, ref=sha)
        return sha

    commit.repo = repo  # type: ignore[attr-defined]
    commit.path = tmp_path  # type: ignore[attr-defined]
    return commit
