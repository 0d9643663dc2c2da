"""Changelog rendering with Jinja2.

The renderer receives one context per release and knows nothing about
how commits were classified. Templates get the mapping produced by
:meth:`ReleaseContext.to_dict` plus a few filters:

- ``upper_first``: uppercase the first character
- ``date(fmt)``: format a datetime (empty string for None)
- ``truncate_id(length=7)``: shorten a commit id
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import jinja2

from changelog_py.exceptions import TemplateError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from changelog_py.config.models import ChangelogConfig
    from changelog_py.core.release import ReleaseContext


def upper_first(value: str | None) -> str:
    if not value:
        return ""
    return value[0].upper() + value[1:]


def format_date(value: datetime | None, fmt: str = "%Y-%m-%d") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def truncate_id(value: str, length: int = 7) -> str:
    return value[:length]


def create_environment() -> jinja2.Environment:
    """Create the Jinja2 environment used for all changelog templates."""
    env = jinja2.Environment(
        autoescape=False,
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["upper_first"] = upper_first
    env.filters["date"] = format_date
    env.filters["truncate_id"] = truncate_id
    return env


class ChangelogRenderer:
    """Render a changelog document from release contexts.

    Args:
        config: The ``[changelog]`` configuration section

    Raises:
        TemplateError: If a template has a syntax error
    """

    def __init__(self, config: ChangelogConfig) -> None:
        self.config = config
        self.env = create_environment()
        try:
            self._body = self.env.from_string(config.body)
            self._header = self.env.from_string(config.header) if config.header else None
            self._footer = self.env.from_string(config.footer) if config.footer else None
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(f"Invalid changelog template (line {e.lineno}): {e.message}") from e

    def _render(self, template: jinja2.Template, context: dict[str, Any]) -> str:
        try:
            return template.render(**context)
        except jinja2.TemplateError as e:
            raise TemplateError(f"Failed to render changelog template: {e}") from e

    def render_release(self, release: ReleaseContext) -> str:
        """Render a single release body."""
        text = self._render(self._body, release.to_dict())
        return text.strip() + "\n" if self.config.trim else text

    def render(
        self,
        releases: Sequence[ReleaseContext],
        *,
        include_header: bool = True,
        include_footer: bool = True,
    ) -> str:
        """Render the full document.

        Args:
            releases: Release contexts, oldest first; they are rendered newest first
            include_header: Render the configured header
            include_footer: Render the configured footer

        Returns:
            The changelog text
        """
        context = {"releases": [release.to_dict() for release in releases]}
        parts: list[str] = []

        if include_header and self._header is not None:
            parts.append(self._render(self._header, context))

        bodies = [self.render_release(release) for release in reversed(releases)]
        separator = "\n" if self.config.trim else ""
        parts.append(separator.join(bodies))

        if include_footer and self._footer is not None:
            footer = self._render(self._footer, context)
            parts.append(("\n" + footer) if self.config.trim and bodies else footer)

        return "".join(parts)
