"""Commit message preprocessing.

Preprocessors rewrite the raw message before it is parsed or
classified, e.g. turning ``(#42)`` into a link or prefixing legacy
messages with a conventional type. Rules run in declaration order and
each one sees the output of the previous one.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from changelog_py.core.commits import Commit
    from changelog_py.core.rules import PreprocessRule


def preprocess_message(message: str, rules: Iterable[PreprocessRule]) -> str:
    """Apply every preprocessing rule to a message.

    Args:
        message: Message text
        rules: Preprocessing rules in declaration order

    Returns:
        The rewritten message (unchanged if no rule matched)
    """
    for rule in rules:
        message = rule.apply(message)
    return message


def preprocess(commit: Commit, rules: Iterable[PreprocessRule]) -> Commit:
    """Return a copy of ``commit`` with its message rewritten."""
    message = preprocess_message(commit.message, rules)
    if message == commit.message:
        return commit
    return dataclasses.replace(commit, message=message)
