"""Configuration discovery and loading.

Configuration is looked up in this order, starting from the project
directory and walking up through its parents:

1. ``changelog.toml``
2. ``cliff.toml``
3. ``[tool.changelog-py]`` in ``pyproject.toml``

When nothing is found the defaults from :mod:`changelog_py.config.models`
are used.

``cliff.toml`` templates are written for git-cliff's Tera engine. Most
of them are also valid Jinja2; any that are not (e.g. ``self::macro()``
calls or Tera-only filters) are replaced by the default template with a
warning, so the ``[git]`` rules of such a file remain usable.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import jinja2
from pydantic import ValidationError

from changelog_py.config.models import ChangelogConfig, ChangelogPyConfig
from changelog_py.core.template import create_environment
from changelog_py.exceptions import ConfigNotFoundError, ConfigValidationError
from changelog_py.logging import get_logger

log = get_logger(__name__)

CLIFF_FILENAME = "cliff.toml"
CONFIG_FILENAMES = ("changelog.toml", CLIFF_FILENAME)
PYPROJECT_TABLE = "changelog-py"


def load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Parsed TOML content as a dictionary

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigValidationError: If the TOML is invalid
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest configuration file.

    Searches ``start_path`` and its parents. A ``pyproject.toml`` only
    counts if it carries a ``[tool.changelog-py]`` table.

    Args:
        start_path: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the configuration file, or None if none was found
    """
    current = (start_path or Path.cwd()).resolve()

    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate

        pyproject = directory / "pyproject.toml"
        if pyproject.is_file() and extract_pyproject_config(load_toml(pyproject)):
            return pyproject

    return None


def extract_pyproject_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Extract the ``[tool.changelog-py]`` section from pyproject data.

    Args:
        pyproject: Parsed pyproject.toml content

    Returns:
        The changelog-py configuration table (empty dict if not present)
    """
    return pyproject.get("tool", {}).get(PYPROJECT_TABLE, {})


def parse_config(data: dict[str, Any], source: str = "<config>") -> ChangelogPyConfig:
    """Validate raw configuration data.

    Args:
        data: Raw configuration mapping with ``changelog`` / ``git`` tables
        source: Description of where the data came from, for error messages

    Returns:
        Validated configuration

    Raises:
        ConfigValidationError: If the data doesn't match the schema
    """
    try:
        return ChangelogPyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {source}:\n{e}") from e


def load_config(path: Path | None = None) -> ChangelogPyConfig:
    """Load configuration from a file or by discovery.

    Args:
        path: A configuration file, a project directory to search from,
              or None to search from the current directory

    Returns:
        Validated configuration (defaults if nothing was found)

    Raises:
        ConfigNotFoundError: If an explicit file path doesn't exist
        ConfigValidationError: If the configuration is invalid
    """
    if path is not None and not path.is_dir():
        config_path: Path | None = path
    else:
        config_path = find_config_file(path)

    if config_path is None:
        log.debug("no configuration found, using defaults")
        return ChangelogPyConfig()

    data = load_toml(config_path)
    if config_path.name == "pyproject.toml":
        data = extract_pyproject_config(data)

    log.debug("loaded configuration", path=str(config_path))
    config = parse_config(data, source=str(config_path))
    if config_path.name == CLIFF_FILENAME:
        config = replace_foreign_templates(config, source=str(config_path))
    return config


def replace_foreign_templates(config: ChangelogPyConfig, source: str) -> ChangelogPyConfig:
    """Swap templates that don't compile as Jinja2 for the defaults.

    Args:
        config: Validated configuration loaded from a ``cliff.toml``
        source: Where the configuration came from, for the log message

    Returns:
        The configuration with every non-Jinja2 template replaced
    """
    env = create_environment()
    defaults = ChangelogConfig()
    replaced: dict[str, str | None] = {}

    for name in ("header", "body", "footer"):
        template = getattr(config.changelog, name)
        if template is None:
            continue
        try:
            env.from_string(template)
        except jinja2.TemplateSyntaxError as e:
            log.warning(
                "template is not valid Jinja2, using the default",
                source=source,
                template=name,
                line=e.lineno,
                error=e.message,
            )
            replaced[name] = getattr(defaults, name)

    if not replaced:
        return config
    return config.model_copy(update={"changelog": config.changelog.model_copy(update=replaced)})
