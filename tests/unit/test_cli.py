"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from changelog_py import __version__
from changelog_py.cli import main

CONFIG = """\
[changelog]
header = "# Changelog\\n\\n"
footer = ""

[git]
commit_parsers = [
    { message = "^feat", group = "Features" },
    { message = "^fix", group = "Bug Fixes" },
    { message = "^chore", skip = true },
]
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(temp_git_repo):
    """A repository with one release and unreleased work."""
    temp_git_repo("feat: add login", 1)
    temp_git_repo("fix(auth): reject expired tokens", 2, tag="v0.1.0")
    temp_git_repo("chore: tidy", 3)
    temp_git_repo("feat(api): paginate results", 4)
    (temp_git_repo.path / "changelog.toml").write_text(CONFIG)
    return temp_git_repo.path


class TestMain:
    """Tests for the command group."""

    def test_version(self, runner: CliRunner):
        """--version prints the package version."""
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestGenerateCommand:
    """Tests for 'changelog-py generate'."""

    def test_stdout(self, runner: CliRunner, project):
        """The changelog is printed to stdout."""
        result = runner.invoke(main, ["--quiet", "generate", "-r", str(project)])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("# Changelog")
        assert "## [unreleased]" in result.output
        assert "- *(api)* Paginate results" in result.output
        assert "## [v0.1.0]" in result.output
        assert "- *(auth)* Reject expired tokens" in result.output
        assert "tidy" not in result.output

    def test_output_file(self, runner: CliRunner, project, tmp_path):
        """--output writes the changelog to a file."""
        target = tmp_path / "CHANGELOG.md"

        result = runner.invoke(main, ["-q", "generate", "-r", str(project), "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert "## [v0.1.0]" in target.read_text()

    def test_unreleased_with_tag(self, runner: CliRunner, project):
        """--unreleased --tag renders only new work under the given version."""
        result = runner.invoke(
            main, ["-q", "generate", "-r", str(project), "--unreleased", "--tag", "v0.2.0"]
        )

        assert result.exit_code == 0, result.output
        assert "## [v0.2.0]" in result.output
        assert "v0.1.0" not in result.output

    def test_prepend(self, runner: CliRunner, project, tmp_path):
        """--prepend inserts new releases above the existing ones."""
        existing = tmp_path / "CHANGELOG.md"
        existing.write_text("# Changelog\n\n## [v0.0.1] - 2023-01-01\n\n- Initial\n")

        result = runner.invoke(
            main, ["-q", "generate", "-r", str(project), "-u", "-t", "v0.2.0", "-p", str(existing)]
        )

        text = existing.read_text()
        assert result.exit_code == 0, result.output
        assert text.startswith("# Changelog\n\n## [v0.2.0]")
        assert text.index("## [v0.2.0]") < text.index("## [v0.0.1]")
        assert text.count("# Changelog") == 1

    def test_workers(self, runner: CliRunner, project):
        """Output doesn't depend on the number of workers."""
        single = runner.invoke(main, ["-q", "generate", "-r", str(project)])
        multi = runner.invoke(main, ["-q", "generate", "-r", str(project), "-w", "4"])

        assert multi.exit_code == 0
        assert multi.output == single.output

    def test_invalid_config(self, runner: CliRunner, project):
        """Unknown configuration keys are reported and exit with 1."""
        (project / "changelog.toml").write_text("[git]\nno_such_option = true\n")

        result = runner.invoke(main, ["-q", "generate", "-r", str(project)])

        assert result.exit_code == 1
        assert "Error loading config" in result.output

    def test_invalid_pattern(self, runner: CliRunner, project):
        """A parser regex that doesn't compile is reported with its rule."""
        (project / "changelog.toml").write_text(
            '[git]\ncommit_parsers = [{ message = "^feat(", group = "Features" }]\n'
        )

        result = runner.invoke(main, ["-q", "generate", "-r", str(project)])

        assert result.exit_code == 1
        assert "commit_parsers[0]" in result.output

    def test_not_a_repository(self, runner: CliRunner, tmp_path):
        """A directory outside git is rejected."""
        result = runner.invoke(main, ["-q", "generate", "-r", str(tmp_path)])

        assert result.exit_code == 1
        assert "Not a git repository" in result.output


class TestContextCommand:
    """Tests for 'changelog-py context'."""

    def test_json(self, runner: CliRunner, project):
        """Release contexts are printed as JSON, newest first."""
        result = runner.invoke(main, ["-q", "context", "-r", str(project)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [r["version"] for r in data] == [None, "v0.1.0"]
        assert data[0]["groups"]["Features"][0]["scope"] == "api"
        assert data[1]["previous"] is None
