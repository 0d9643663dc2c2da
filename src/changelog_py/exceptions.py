"""Exception hierarchy for changelog-py.

All errors raised by the package derive from ChangelogPyError so the
CLI can report them uniformly. Configuration problems are raised while
the rule set is built, before any commit is looked at.
"""

from __future__ import annotations


class ChangelogPyError(Exception):
    """Base class for all changelog-py errors."""


class ConfigError(ChangelogPyError):
    """Configuration could not be loaded or compiled."""


class ConfigNotFoundError(ConfigError):
    """An explicitly requested configuration file does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration is syntactically or structurally invalid."""


class InvalidPatternError(ConfigError):
    """A regular expression in the configuration failed to compile.

    Attributes:
        rule: Location of the offending rule, e.g. ``commit_parsers[3].message``
        pattern: The pattern source that failed to compile
    """

    def __init__(self, message: str, *, rule: str, pattern: str) -> None:
        super().__init__(message)
        self.rule = rule
        self.pattern = pattern


class GitError(ChangelogPyError):
    """The git history could not be read."""


class TemplateError(ChangelogPyError):
    """The changelog template could not be compiled or rendered."""


class GenerationCancelledError(ChangelogPyError):
    """Changelog generation was cancelled between releases."""
