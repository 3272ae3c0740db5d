"""Find and read the optional ``config.yml`` files.

A deployment may keep settings in a global file, in a per-checkout
``.discussion_sync/`` directory, or in a file named by
``DISCUSSION_SYNC_CONFIG``.  Sections from a more specific file replace
the same sections from a broader one; values may reference environment
variables as ``${NAME}`` or ``${NAME:-fallback}`` so tokens can stay
out of the file.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DISCUSSION_SYNC_CONFIG"

_PROJECT_CONFIG = Path(".discussion_sync") / "config.yml"
_GLOBAL_CONFIG = Path(".config") / "discussion_sync" / "config.yml"

_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in *value*.

    An unset or empty variable expands to its fallback, or to an empty
    string when there is none.  An unterminated ``${`` is kept as text.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _interpolate_recursive(obj: Any) -> Any:
    match obj:
        case str():
            return interpolate_env_vars(obj)
        case dict():
            return {key: _interpolate_recursive(val) for key, val in obj.items()}
        case list():
            return [_interpolate_recursive(item) for item in obj]
        case _:
            return obj


def discover_config_files() -> list[Path]:
    """List the config files present on disk, most specific first.

    The candidates are the path in ``DISCUSSION_SYNC_CONFIG``, then
    ``./.discussion_sync/config.yml``, then
    ``~/.config/discussion_sync/config.yml``.
    """
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    candidates.append(Path.cwd() / _PROJECT_CONFIG)
    candidates.append(Path.home() / _GLOBAL_CONFIG)
    return [path for path in candidates if path.exists()]


def load_hierarchical_config() -> dict[str, Any]:
    """Read every discovered config file into one dict.

    Files are applied broadest first, so a top-level section in a more
    specific file replaces the whole section from a broader one.
    Environment references are expanded after merging.

    Returns:
        The merged settings, or ``{}`` when no file exists.

    Raises:
        yaml.YAMLError: If a file is not valid YAML.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading config file %s", path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError:
            logger.error("Config file %s is not valid YAML", path)
            raise
        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring config file %s: top level is a %s, not a mapping",
                path,
                type(data).__name__,
            )
            continue
        merged.update(data)

    if not merged:
        logger.debug("No config file settings; using environment only")
    return _interpolate_recursive(merged)
