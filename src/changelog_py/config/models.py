"""Configuration models for changelog-py.

The configuration mirrors the ``[changelog]`` / ``[git]`` layout of a
``cliff.toml`` file. Models only validate shape and types; regular
expressions are compiled later by :class:`changelog_py.core.rules.RuleSet`
so that failures can name the offending rule.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_HEADER = """\
# Changelog

All notable changes to this project will be documented in this file.

"""

DEFAULT_BODY = """\
{% if version %}\
## [{{ version }}] - {{ timestamp | date("%Y-%m-%d") }}
{% else %}\
## [unreleased]
{% endif %}\
{% for group, commits in groups.items() %}
### {{ group | striptags | trim | upper_first }}

{% for commit in commits %}\
- {% if commit.scope %}*({{ commit.scope }})* {% endif %}\
{{ commit.message | upper_first }}\
{% if commit.breaking %} [**breaking**]{% endif %}
{% endfor %}\
{% endfor %}\
{% if ungrouped %}
### Other

{% for commit in ungrouped %}\
- {{ commit.message | upper_first }}
{% endfor %}\
{% endif %}
"""

DEFAULT_FOOTER = """\
<!-- generated by changelog-py -->
"""


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CommitPreprocessorConfig(_StrictModel):
    """A single regex rewrite applied to commit messages."""

    pattern: str
    replace: str = ""


class CommitParserConfig(_StrictModel):
    """A single classification rule.

    Absent predicates (``message``, ``body``, ``scope``) match anything.
    """

    message: str | None = None
    body: str | None = None
    scope: str | None = None
    group: str | None = None
    skip: bool = False
    default_scope: str | None = None


class GroupConfig(_StrictModel):
    """An explicitly declared output group."""

    name: str
    sort_key: int | str | None = None


class ChangelogConfig(_StrictModel):
    """Rendering configuration (``[changelog]`` table)."""

    header: str | None = DEFAULT_HEADER
    body: str = DEFAULT_BODY
    footer: str | None = DEFAULT_FOOTER
    trim: bool = True


class GitConfig(_StrictModel):
    """Commit processing configuration (``[git]`` table)."""

    conventional_commits: bool = True
    filter_unconventional: bool = True
    split_commits: bool = False
    commit_preprocessors: list[CommitPreprocessorConfig] = Field(default_factory=list)
    commit_parsers: list[CommitParserConfig] = Field(default_factory=list)
    groups: list[GroupConfig] = Field(default_factory=list)
    protect_breaking_commits: bool = False
    filter_commits: bool = False
    tag_pattern: str | None = None
    skip_tags: str | None = None
    ignore_tags: str | None = None
    topo_order: bool = False
    sort_commits: Literal["oldest", "newest"] = "oldest"


class ChangelogPyConfig(_StrictModel):
    """Root configuration for changelog-py."""

    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    git: GitConfig = Field(default_factory=GitConfig)
