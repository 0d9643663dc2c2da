"""Command line interface for changelog-py.

Commands:

- ``changelog-py generate``: render the changelog
- ``changelog-py context``: print the release contexts as JSON
"""

from __future__ import annotations

import click
from rich.console import Console

from changelog_py import __version__
from changelog_py.cli.commands.generate import run_context, run_generate
from changelog_py.logging import configure_logging

_repository_option = click.option(
    "--repository",
    "-r",
    type=click.Path(file_okay=False),
    default=None,
    help="Path to the git repository (defaults to the current directory).",
)
_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (changelog.toml, cliff.toml or pyproject.toml).",
)
_unreleased_option = click.option(
    "--unreleased", "-u", is_flag=True, help="Only process unreleased commits."
)
_latest_option = click.option("--latest", "-l", is_flag=True, help="Only process the latest release.")
_tag_option = click.option(
    "--tag", "-t", default=None, help="Version to use for unreleased commits."
)


@click.group()
@click.version_option(__version__, prog_name="changelog-py")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors.")
@click.option("--json-log", is_flag=True, help="Emit logs as JSON lines.")
def main(verbose: bool, quiet: bool, json_log: bool) -> None:
    """Generate changelogs from git history."""
    configure_logging(verbose=verbose, quiet=quiet, json_log=json_log)


@main.command()
@_repository_option
@_config_option
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the changelog to this file instead of stdout.",
)
@click.option(
    "--prepend",
    "-p",
    type=click.Path(dir_okay=False),
    default=None,
    help="Insert new entries into an existing changelog file.",
)
@_unreleased_option
@_latest_option
@_tag_option
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of threads processing releases.",
)
def generate(
    repository: str | None,
    config_path: str | None,
    output: str | None,
    prepend: str | None,
    unreleased: bool,
    latest: bool,
    tag: str | None,
    workers: int,
) -> None:
    """Render the changelog."""
    run_generate(
        repository=repository,
        config_path=config_path,
        output=output,
        prepend=prepend,
        unreleased=unreleased,
        latest=latest,
        tag=tag,
        workers=workers,
        console=Console(),
        err_console=Console(stderr=True),
    )


@main.command()
@_repository_option
@_config_option
@_unreleased_option
@_latest_option
@_tag_option
def context(
    repository: str | None,
    config_path: str | None,
    unreleased: bool,
    latest: bool,
    tag: str | None,
) -> None:
    """Print the release contexts as JSON."""
    run_context(
        repository=repository,
        config_path=config_path,
        unreleased=unreleased,
        latest=latest,
        tag=tag,
        console=Console(),
        err_console=Console(stderr=True),
    )
