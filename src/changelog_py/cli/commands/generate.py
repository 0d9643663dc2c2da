"""Implementation of the 'generate' and 'context' commands.

'generate' renders the changelog to stdout or a file. 'context' prints
the per-release context as JSON, which is handy when writing templates.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from changelog_py.config import load_config
from changelog_py.core.changelog import build_changelog, generate_changelog
from changelog_py.core.rules import RuleSet
from changelog_py.exceptions import ChangelogPyError
from changelog_py.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from changelog_py.config.models import ChangelogPyConfig


def _load(
    repository: str | None,
    config_path: str | None,
    err_console: Console,
) -> tuple[GitRepository, ChangelogPyConfig]:
    project_path = Path(repository) if repository else Path.cwd()

    try:
        config = load_config(Path(config_path) if config_path else project_path)
    except ChangelogPyError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    try:
        repo = GitRepository(project_path)
    except ChangelogPyError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    return repo, config


def run_generate(
    repository: str | None,
    config_path: str | None,
    output: str | None,
    prepend: str | None,
    unreleased: bool,
    latest: bool,
    tag: str | None,
    workers: int,
    console: Console,
    err_console: Console,
) -> None:
    """Run the generate command.

    Args:
        repository: Optional path to the repository
        config_path: Optional path to a configuration file
        output: File to write the changelog to (stdout if None)
        prepend: Existing changelog file to prepend the new entries to
        unreleased: Only include unreleased changes
        latest: Only include the newest tagged release
        tag: Version to give unreleased changes
        workers: Number of threads processing releases
        console: Console for standard output
        err_console: Console for error output
    """
    repo, config = _load(repository, config_path, err_console)

    try:
        content = generate_changelog(
            repo,
            config,
            unreleased_only=unreleased,
            latest_only=latest,
            tag=tag,
            workers=workers,
            include_header=prepend is None,
            include_footer=prepend is None,
        )
    except ChangelogPyError as e:
        err_console.print(f"[red]Error generating changelog:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if prepend is not None:
        prepend_path = Path(prepend)
        existing = prepend_path.read_text() if prepend_path.exists() else ""
        prepend_path.write_text(_insert_after_header(existing, content))
        err_console.print(f"  [green]✓[/] Updated {prepend_path}")

    if output is not None:
        Path(output).write_text(content)
        err_console.print(f"  [green]✓[/] Wrote {output}")
    elif prepend is None:
        console.print(content, end="", markup=False, highlight=False, emoji=False, soft_wrap=True)


def run_context(
    repository: str | None,
    config_path: str | None,
    unreleased: bool,
    latest: bool,
    tag: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the context command: print release contexts as JSON."""
    repo, config = _load(repository, config_path, err_console)

    try:
        contexts = build_changelog(
            repo.commits(),
            repo.tags(),
            RuleSet.from_config(config.git),
            unreleased_only=unreleased,
            latest_only=latest,
            tag=tag,
        )
    except ChangelogPyError as e:
        err_console.print(f"[red]Error building context:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    payload = [context.to_dict() for context in reversed(contexts)]
    console.print(
        json.dumps(payload, indent=2, default=str),
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
    )


def _insert_after_header(existing: str, content: str) -> str:
    """Insert new release entries before the first release heading."""
    marker = existing.find("\n## ")
    if marker == -1:
        return content + existing
    return existing[: marker + 1] + content.rstrip("\n") + "\n\n" + existing[marker + 1 :]
