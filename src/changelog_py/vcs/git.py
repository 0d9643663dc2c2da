"""Git history reader built on GitPython.

This is the boundary between the repository and the pipeline: it reads
commits and tags once and hands plain :class:`Commit` records to the
core. It never modifies the repository.
"""

from __future__ import annotations

from pathlib import Path

import git

from changelog_py.core.commits import Commit
from changelog_py.exceptions import GitError
from changelog_py.logging import get_logger

log = get_logger(__name__)


class GitRepository:
    """Read-only view of a git repository.

    Args:
        path: Path inside the working tree

    Raises:
        GitError: If ``path`` is not inside a git repository
    """

    def __init__(self, path: Path) -> None:
        try:
            self._repo = git.Repo(path, search_parent_directories=True)
        except git.NoSuchPathError as e:
            raise GitError(f"Path does not exist: {path}") from e
        except git.InvalidGitRepositoryError as e:
            raise GitError(f"Not a git repository: {path}") from e

        self.path = Path(self._repo.working_tree_dir or path)

    def has_commits(self) -> bool:
        return self._repo.head.is_valid()

    def commits(self, rev: str = "HEAD") -> list[Commit]:
        """Read every commit reachable from ``rev``, oldest first.

        Args:
            rev: Revision to start from

        Returns:
            Commits with parents, author and authoring time; an unborn
            HEAD yields an empty list

        Raises:
            GitError: If ``rev`` can't be resolved
        """
        if rev == "HEAD" and not self.has_commits():
            return []

        try:
            raw = list(self._repo.iter_commits(rev, reverse=True))
        except (git.GitCommandError, ValueError) as e:
            raise GitError(f"Failed to read history from {rev}: {e}") from e

        commits = [
            Commit(
                id=c.hexsha,
                message=_decode(c.message).strip(),
                timestamp=c.authored_datetime,
                committed=c.committed_datetime,
                parents=tuple(p.hexsha for p in c.parents),
                author=c.author.name,
            )
            for c in raw
        ]
        log.debug("read history", rev=rev, commits=len(commits))
        return commits

    def tags(self) -> dict[str, str]:
        """Map tag names to the ids of the commits they point at.

        Annotated tags are peeled to their commit. Tags that point at
        something other than a commit are left out.
        """
        result: dict[str, str] = {}
        for ref in self._repo.tags:
            try:
                result[ref.name] = ref.commit.hexsha
            except ValueError:
                log.debug("tag does not point at a commit", tag=ref.name)
        return result


def _decode(message: str | bytes) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return message
