"""Commit classification.

Parser rules are evaluated in declaration order and the first rule whose
declared predicates all match decides the outcome. Classification only
looks at the commit itself and the rule set, so it is safe to run for
many commits concurrently.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from changelog_py.core.commits import extract_body, parse_conventional, split_commit
from changelog_py.core.preprocess import preprocess
from changelog_py.core.rules import FALLBACK_GROUP
from changelog_py.logging import get_logger

if TYPE_CHECKING:
    import re
    from collections.abc import Iterable

    from changelog_py.core.commits import Commit
    from changelog_py.core.rules import ParserRule, RuleSet

log = get_logger(__name__)


class Outcome(str, Enum):
    """Result of evaluating parser rules against a commit."""

    GROUPED = "grouped"
    SKIPPED = "skipped"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one commit.

    Attributes:
        commit: The commit with group and scope attached
        outcome: Which branch of the rule evaluation was taken
        rule: The first rule that applied, if any
        unconventional: The commit matched no rule, or isn't a conventional
            commit while conventional parsing is enabled
        protected: A skip was overridden because the commit is breaking
        kept: Whether the commit survives skip and filter policies
    """

    commit: Commit
    outcome: Outcome
    rule: ParserRule | None = None
    unconventional: bool = False
    protected: bool = False
    kept: bool = True


def _search(pattern: re.Pattern[str] | None, text: str | None) -> re.Match[str] | bool | None:
    if pattern is None:
        return True
    if text is None:
        return None
    return pattern.search(text)


def match_rule(
    commit: Commit,
    rules: Iterable[ParserRule],
) -> tuple[ParserRule, re.Match[str] | None] | None:
    """Find the first parser rule that applies to a commit.

    Args:
        commit: Preprocessed commit
        rules: Parser rules in declaration order

    Returns:
        ``(rule, message_match)`` for the first applying rule, or None.
        ``message_match`` is None when the rule has no message predicate.
    """
    for rule in rules:
        message_match = _search(rule.message, commit.message)
        if not message_match:
            continue
        if not _search(rule.body, commit.body):
            continue
        if not _search(rule.scope, commit.scope):
            continue
        return rule, message_match if message_match is not True else None
    return None


def classify(commit: Commit, rules: RuleSet) -> Classification:
    """Classify a single, already preprocessed commit.

    Args:
        commit: Commit to classify
        rules: Compiled rule set

    Returns:
        The classification; ``kept`` tells whether the commit belongs in output
    """
    policies = rules.policies
    found = match_rule(commit, rules.parsers)
    protected = False

    if found is None:
        outcome = Outcome.UNMATCHED
        rule = None
        classified = dataclasses.replace(commit, group=None)
    else:
        rule, message_match = found
        if rule.skip and not (policies.protect_breaking and commit.breaking):
            return Classification(commit=commit, outcome=Outcome.SKIPPED, rule=rule, kept=False)

        protected = rule.skip
        scope = commit.scope
        if message_match is not None and "scope" in message_match.re.groupindex:
            scope = message_match.group("scope") or scope
        if scope is None:
            scope = rule.default_scope

        outcome = Outcome.GROUPED
        classified = dataclasses.replace(
            commit,
            group=rule.group or FALLBACK_GROUP,
            scope=scope,
        )

    unconventional = outcome is Outcome.UNMATCHED or (
        policies.conventional_commits and commit.conventional is None
    )
    kept = not (policies.filter_unconventional and unconventional) and not (
        policies.filter_commits and classified.group is None
    )

    return Classification(
        commit=classified,
        outcome=outcome,
        rule=rule,
        unconventional=unconventional,
        protected=protected,
        kept=kept,
    )


def prepare(commit: Commit, rules: RuleSet) -> list[Commit]:
    """Split, preprocess and (optionally) conventionally parse a raw commit."""
    policies = rules.policies
    parts = split_commit(commit) if policies.split_commits else [commit]
    prepared = []
    for part in parts:
        part = extract_body(preprocess(part, rules.preprocessors))
        if policies.conventional_commits:
            part = parse_conventional(part)
        prepared.append(part)
    return prepared


def classify_commits(commits: Iterable[Commit], rules: RuleSet) -> list[Commit]:
    """Run preprocessing and classification for a batch of raw commits.

    Args:
        commits: Raw commits from the history reader
        rules: Compiled rule set

    Returns:
        Classified commits that survive skip and filter policies, in input order
    """
    kept: list[Commit] = []
    for raw in commits:
        for commit in prepare(raw, rules):
            result = classify(commit, rules)
            if result.kept:
                kept.append(result.commit)
            else:
                log.debug(
                    "commit excluded",
                    commit=commit.short_id,
                    outcome=result.outcome.value,
                    rule=result.rule.location if result.rule else None,
                    unconventional=result.unconventional,
                )
    return kept
