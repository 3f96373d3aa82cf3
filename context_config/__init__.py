"""
Configuration package for the context engine.

Exports the configuration models and loader functions.
"""

from .compaction_config import CompactionConfig
from .defaults import CHARS_PER_TOKEN, DEFAULT_TOKEN_LIMIT
from .drift_config import DriftConfig
from .health_config import HealthThresholds
from .loader import (
    config_search_paths,
    env_overrides,
    get_config,
    load_config,
    load_config_file,
    merge_configs,
    strip_jsonc_comments,
)
from .main_config import ContextRotConfig
from .scoring_config import SentenceScoringPolicy

__all__ = [
    # Constants
    "CHARS_PER_TOKEN",
    "DEFAULT_TOKEN_LIMIT",
    # Config models
    "ContextRotConfig",
    "HealthThresholds",
    "CompactionConfig",
    "DriftConfig",
    "SentenceScoringPolicy",
    # Loader functions
    "load_config",
    "get_config",
    "load_config_file",
    "merge_configs",
    "strip_jsonc_comments",
    "config_search_paths",
    "env_overrides",
]
