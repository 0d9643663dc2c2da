"""Compiled, immutable rule set.

:meth:`RuleSet.from_config` is the only place where patterns from the
configuration are compiled. Everything downstream (preprocessing,
classification, segmentation) receives the frozen :class:`RuleSet` and
never re-validates it, so it can be shared freely between threads.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from changelog_py.exceptions import ConfigValidationError, InvalidPatternError
from changelog_py.logging import get_logger

if TYPE_CHECKING:
    from changelog_py.config.models import CommitParserConfig, GitConfig

log = get_logger(__name__)

FALLBACK_GROUP = "uncategorized"

# $1, ${1}, $name, ${name} and $$ in replacement templates
_REPLACEMENT_REF = re.compile(r"\$(?:(?P<dollar>\$)|\{(?P<braced>\w+)\}|(?P<bare>\w+))")


def compile_pattern(pattern: str, rule: str) -> re.Pattern[str]:
    """Compile a regex from the configuration.

    Args:
        pattern: Regular expression source
        rule: Location of the rule, used in the error message

    Raises:
        InvalidPatternError: If the pattern doesn't compile
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(
            f"Invalid pattern in {rule}: {pattern!r} ({e})",
            rule=rule,
            pattern=pattern,
        ) from e


def expand_replacement(template: str, match: re.Match[str]) -> str:
    """Expand capture-group references in a replacement template.

    Numbered (``$1``, ``${1}``) and named (``$name``, ``${name}``)
    references are supported; ``$$`` is a literal dollar sign. A reference
    to a group that doesn't exist or didn't participate expands to an
    empty string.
    """

    def resolve(ref: re.Match[str]) -> str:
        if ref.group("dollar"):
            return "$"
        name = ref.group("braced") or ref.group("bare")
        key: int | str = int(name) if name.isdigit() else name
        try:
            return match.group(key) or ""
        except IndexError:
            return ""

    return _REPLACEMENT_REF.sub(resolve, template)


@dataclass(frozen=True)
class PreprocessRule:
    """A regex rewrite applied to every match in a message."""

    index: int
    pattern: re.Pattern[str]
    replace: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(lambda m: expand_replacement(self.replace, m), text)


@dataclass(frozen=True)
class ParserRule:
    """A classification rule.

    Predicates that are None act as wildcards. When ``skip`` is set the
    rule excludes matching commits; ``group`` is then only used if a
    breaking commit is protected from the skip.
    """

    index: int
    message: re.Pattern[str] | None = None
    body: re.Pattern[str] | None = None
    scope: re.Pattern[str] | None = None
    group: str | None = None
    skip: bool = False
    default_scope: str | None = None

    @property
    def location(self) -> str:
        return f"commit_parsers[{self.index}]"


@dataclass(frozen=True)
class Group:
    """An output section and the key that orders it."""

    label: str
    sort_key: int | str
    index: int

    @property
    def order(self) -> tuple[int, int | str, int]:
        # Integer keys sort numerically and before string keys.
        kind = 0 if isinstance(self.sort_key, int) else 1
        return (kind, self.sort_key, self.index)


@dataclass(frozen=True)
class Policies:
    """Scalar switches threaded through every pipeline stage."""

    conventional_commits: bool = True
    filter_unconventional: bool = True
    filter_commits: bool = False
    protect_breaking: bool = False
    split_commits: bool = False
    sort_commits: Literal["oldest", "newest"] = "oldest"
    topo_order: bool = False
    tag_pattern: str | None = None
    skip_tags: re.Pattern[str] | None = None
    ignore_tags: re.Pattern[str] | None = None

    def matches_tag_pattern(self, name: str) -> bool:
        return self.tag_pattern is None or fnmatch.fnmatchcase(name, self.tag_pattern)

    def is_skipped_tag(self, name: str) -> bool:
        return self.skip_tags is not None and self.skip_tags.search(name) is not None

    def is_ignored_tag(self, name: str) -> bool:
        return self.ignore_tags is not None and self.ignore_tags.search(name) is not None


@dataclass(frozen=True)
class RuleSet:
    """All compiled rules and policies for one changelog run."""

    preprocessors: tuple[PreprocessRule, ...] = ()
    parsers: tuple[ParserRule, ...] = ()
    groups: tuple[Group, ...] = ()
    policies: Policies = Policies()

    @classmethod
    def from_config(cls, config: GitConfig) -> RuleSet:
        """Compile a validated ``[git]`` configuration.

        Args:
            config: Git section of the configuration

        Returns:
            Immutable rule set

        Raises:
            InvalidPatternError: If any pattern fails to compile
            ConfigValidationError: If a parser rule declares neither a group nor skip
        """
        preprocessors = tuple(
            PreprocessRule(
                index=i,
                pattern=compile_pattern(p.pattern, f"commit_preprocessors[{i}].pattern"),
                replace=p.replace,
            )
            for i, p in enumerate(config.commit_preprocessors)
        )

        parsers = tuple(_compile_parser(i, p) for i, p in enumerate(config.commit_parsers))

        policies = Policies(
            conventional_commits=config.conventional_commits,
            filter_unconventional=config.filter_unconventional,
            filter_commits=config.filter_commits,
            protect_breaking=config.protect_breaking_commits,
            split_commits=config.split_commits,
            sort_commits=config.sort_commits,
            topo_order=config.topo_order,
            tag_pattern=config.tag_pattern,
            skip_tags=compile_pattern(config.skip_tags, "skip_tags") if config.skip_tags else None,
            ignore_tags=(
                compile_pattern(config.ignore_tags, "ignore_tags") if config.ignore_tags else None
            ),
        )

        return cls(
            preprocessors=preprocessors,
            parsers=parsers,
            groups=_declare_groups(config, parsers),
            policies=policies,
        )

    def group_order(self, label: str) -> tuple[int, int | str, int] | None:
        """Return the ordering key of a declared group, or None if undeclared."""
        for group in self.groups:
            if group.label == label:
                return group.order
        return None


def _compile_parser(index: int, config: CommitParserConfig) -> ParserRule:
    location = f"commit_parsers[{index}]"

    if config.group is None and not config.skip:
        raise ConfigValidationError(f"{location} must declare either 'group' or 'skip'")
    if config.group is not None and config.skip:
        log.warning(
            "parser rule declares both group and skip, skip takes precedence",
            rule=location,
            group=config.group,
        )

    def pattern(name: str) -> re.Pattern[str] | None:
        source = getattr(config, name)
        return compile_pattern(source, f"{location}.{name}") if source is not None else None

    return ParserRule(
        index=index,
        message=pattern("message"),
        body=pattern("body"),
        scope=pattern("scope"),
        group=config.group,
        skip=config.skip,
        default_scope=config.default_scope,
    )


def _declare_groups(config: GitConfig, parsers: tuple[ParserRule, ...]) -> tuple[Group, ...]:
    labels: list[tuple[str, int | str | None]] = [(g.name, g.sort_key) for g in config.groups]
    seen = {name for name, _ in labels}
    for parser in parsers:
        if parser.group is not None and parser.group not in seen:
            labels.append((parser.group, None))
            seen.add(parser.group)

    groups = []
    for index, (label, sort_key) in enumerate(labels):
        key = index if sort_key is None else sort_key
        groups.append(Group(label=label, sort_key=key, index=index))
    return tuple(groups)
