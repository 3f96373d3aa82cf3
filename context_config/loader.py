"""Configuration loading: JSONC files, layered global -> project -> environment."""

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from .main_config import ContextRotConfig

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".context_rot"
CONFIG_BASENAME = "context_rot"

# Environment variable -> top-level config key
ENV_OVERRIDES = {
    "CONTEXT_ROT_TOKEN_LIMIT": "token_limit",
    "CONTEXT_ROT_DATABASE": "database_path",
}

# A string literal (kept), or a // line comment, or a /* block */ comment (dropped)
_JSONC_TOKEN = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_jsonc_comments(content: str) -> str:
    """
    Remove // and /* */ comments so the text parses as JSON.

    Comment markers inside string values ("https://...") are left intact.
    """
    return _JSONC_TOKEN.sub(lambda m: m.group(1) or "", content)


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Read one .json or .jsonc file.

    Returns:
        The top-level object, or None when the file is absent, unreadable,
        malformed, or not an object. Problems are logged, not raised.
    """
    if not path.exists():
        return None

    try:
        text = path.read_text()
        data = json.loads(strip_jsonc_comments(text) if path.suffix == ".jsonc" else text)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top-level value must be an object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base; nested dicts merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def config_search_paths(project_root: Path, home: Path) -> tuple[Path, list[Path]]:
    """
    Where configuration may live.

    Returns:
        (global config path, project candidates in priority order)
    """
    global_path = home / CONFIG_DIRNAME / f"{CONFIG_BASENAME}.jsonc"
    project_paths = [
        project_root / f"{CONFIG_BASENAME}.jsonc",
        project_root / f"{CONFIG_BASENAME}.json",
        project_root / CONFIG_DIRNAME / f"{CONFIG_BASENAME}.jsonc",
    ]
    return global_path, project_paths


def env_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect config values set through CONTEXT_ROT_* environment variables."""
    environ = os.environ if environ is None else environ
    return {key: environ[name] for name, key in ENV_OVERRIDES.items() if environ.get(name)}


def load_config(project_root: Path | None = None, home: Path | None = None) -> ContextRotConfig:
    """
    Build the effective configuration.

    Layers, lowest precedence first: the global file in ``~/.context_rot``,
    the first project file found, then CONTEXT_ROT_* environment variables.

    Args:
        project_root: Project directory (defaults to the working directory)
        home: Directory holding the global config (defaults to the user's home)

    Raises:
        pydantic.ValidationError: If the merged values are invalid
    """
    project_root = project_root or Path.cwd()
    global_path, project_paths = config_search_paths(project_root, home or Path.home())

    data = load_config_file(global_path) or {}

    for path in project_paths:
        project_data = load_config_file(path)
        if project_data:
            logger.debug("Loaded project config from %s", path)
            data = merge_configs(data, project_data)
            break

    overrides = env_overrides()
    if overrides:
        logger.debug("Applying environment overrides: %s", sorted(overrides))
        data = merge_configs(data, overrides)

    return ContextRotConfig.model_validate(data)


@lru_cache(maxsize=8)
def get_config(project_root: Path | None = None) -> ContextRotConfig:
    """Memoized load_config(); call get_config.cache_clear() to reload."""
    return load_config(project_root or Path.cwd())
