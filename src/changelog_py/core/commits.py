"""Commit records and conventional commit parsing.

A :class:`Commit` is produced once by the history reader and is never
mutated afterwards. Each pipeline stage that derives something from it
(rewritten message, group, scope) returns a new instance built with
:func:`dataclasses.replace`.

Conventional commits follow the format::

    type(scope)!: description

    optional body

    optional footers
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

# Subject line: type(scope)!: description
CONVENTIONAL_PATTERN = re.compile(
    r"^(?P<type>[a-zA-Z]+)"
    r"(?:\((?P<scope>[^)]*)\))?"
    r"(?P<breaking>!)?"
    r":\s+"
    r"(?P<description>\S.*)$"
)

# Git trailer: "token: value" or "token #value"
FOOTER_PATTERN = re.compile(
    r"^(?P<token>BREAKING[- ]CHANGE|[A-Za-z][\w-]*)"
    r"(?P<separator>:\s|\s#)"
    r"(?P<value>.*)$"
)

BREAKING_TOKENS = frozenset({"BREAKING CHANGE", "BREAKING-CHANGE"})


@dataclass(frozen=True)
class Footer:
    """A commit trailer such as ``Refs: #42`` or ``Closes #7``."""

    token: str
    value: str
    separator: str = ": "

    @property
    def is_breaking(self) -> bool:
        return self.token in BREAKING_TOKENS


@dataclass(frozen=True)
class ConventionalCommit:
    """The parsed subject line of a conventional commit."""

    type: str
    description: str
    scope: str | None = None
    breaking: bool = False


@dataclass(frozen=True)
class Commit:
    """A single commit record.

    Attributes:
        id: Unique commit identifier (full SHA for git history)
        message: Commit message; the first line is the subject
        timestamp: Authoring time (timezone-aware)
        committed: Committer time, if the reader knows it; history is
            ordered by it
        body: Optional body text, separate from the subject
        footers: Parsed trailers
        breaking: Explicit breaking-change flag
        scope: Short category label
        parents: Identifiers of parent commits
        author: Author name, if known
        group: Group label assigned during classification
        conventional: Parsed subject when the message is a conventional commit
    """

    id: str
    message: str
    timestamp: datetime
    committed: datetime | None = None
    body: str | None = None
    footers: tuple[Footer, ...] = ()
    breaking: bool = False
    scope: str | None = None
    parents: tuple[str, ...] = ()
    author: str | None = None
    group: str | None = None
    conventional: ConventionalCommit | None = field(default=None, compare=False)

    @property
    def subject(self) -> str:
        """First line of the message."""
        return self.message.split("\n", 1)[0].strip()

    @property
    def short_id(self) -> str:
        return self.id[:7]

    def to_dict(self) -> dict[str, Any]:
        """Return the template/JSON view of this commit.

        For conventional commits ``message`` is the description without the
        ``type(scope):`` prefix; otherwise it is the subject line.
        """
        return {
            "id": self.id,
            "short_id": self.short_id,
            "message": self.conventional.description if self.conventional else self.subject,
            "raw_message": self.message,
            "body": self.body,
            "footers": [dataclasses.asdict(footer) for footer in self.footers],
            "breaking": self.breaking,
            "scope": self.scope,
            "group": self.group,
            "type": self.conventional.type if self.conventional else None,
            "conventional": self.conventional is not None,
            "author": self.author,
            "timestamp": self.timestamp,
            "committed": self.committed,
        }


def parse_footers(lines: list[str]) -> tuple[str, tuple[Footer, ...]]:
    """Split the lines after the subject into body and trailing footers.

    Footers are the trailing block of lines that start with a trailer
    token. A non-matching line inside that block continues the value of
    the footer before it.

    Args:
        lines: Lines following the subject line

    Returns:
        ``(body, footers)``
    """
    end = len(lines)
    while end > 0 and not lines[end - 1].strip():
        end -= 1

    # Walk back over the last paragraph; it is the footer block only if its
    # first line is a trailer.
    start = end
    while start > 0 and lines[start - 1].strip():
        start -= 1

    if start == end or not FOOTER_PATTERN.match(lines[start]):
        return "\n".join(lines[:end]).strip(), ()

    footers: list[Footer] = []
    for line in lines[start:end]:
        m = FOOTER_PATTERN.match(line)
        if m:
            footers.append(
                Footer(
                    token=m.group("token"),
                    value=m.group("value").strip(),
                    separator=": " if m.group("separator").startswith(":") else " #",
                )
            )
        elif footers:
            last = footers[-1]
            footers[-1] = dataclasses.replace(last, value=f"{last.value}\n{line.strip()}")

    return "\n".join(lines[:start]).strip(), tuple(footers)


def extract_body(commit: Commit) -> Commit:
    """Fill ``body`` and ``footers`` from the lines after the subject.

    Commits that already carry a body or footers are returned unchanged.
    """
    if commit.body is not None or commit.footers:
        return commit
    _, _, rest = commit.message.partition("\n")
    if not rest.strip():
        return commit
    body, footers = parse_footers(rest.split("\n"))
    return dataclasses.replace(
        commit,
        body=body or None,
        footers=footers,
        breaking=commit.breaking or any(f.is_breaking for f in footers),
    )


def parse_conventional(commit: Commit) -> Commit:
    """Parse a commit message as a conventional commit.

    The subject line is matched against ``type(scope)!: description``. On
    success the scope and breaking flag are attached, along with the body
    and footers (see :func:`extract_body`). A ``BREAKING CHANGE`` footer
    also marks the commit as breaking. An existing breaking flag or scope
    on the input is never cleared.

    Args:
        commit: Commit whose message has already been preprocessed

    Returns:
        A new commit with ``conventional`` set, or the input unchanged if
        the message doesn't follow the convention
    """
    m = CONVENTIONAL_PATTERN.match(commit.subject)
    if not m:
        return commit

    scope = m.group("scope") or None
    parsed = ConventionalCommit(
        type=m.group("type").lower(),
        description=m.group("description").strip(),
        scope=scope,
        breaking=m.group("breaking") is not None,
    )

    commit = extract_body(commit)
    return dataclasses.replace(
        commit,
        conventional=parsed,
        scope=commit.scope or scope,
        breaking=commit.breaking or parsed.breaking,
    )


def split_commit(commit: Commit) -> list[Commit]:
    """Split a multi-line commit into one commit per non-empty line.

    Every split commit keeps the id and metadata of the original.
    """
    lines = [line.strip() for line in commit.message.split("\n") if line.strip()]
    if len(lines) <= 1:
        return [commit]
    return [dataclasses.replace(commit, message=line, body=None, footers=()) for line in lines]
