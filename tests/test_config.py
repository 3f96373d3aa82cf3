"""
Tests for the configuration system.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from context_config import (
    CompactionConfig,
    ContextRotConfig,
    DriftConfig,
    HealthThresholds,
    SentenceScoringPolicy,
    config_search_paths,
    env_overrides,
    get_config,
    load_config,
    load_config_file,
    merge_configs,
    strip_jsonc_comments,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CONTEXT_ROT_TOKEN_LIMIT", "CONTEXT_ROT_DATABASE"):
        monkeypatch.delenv(name, raising=False)


class TestStripJSONComments:
    """Test JSONC comment stripping."""

    def test_single_line_comments(self):
        """Test that single-line comments are stripped."""
        jsonc = """
        {
            // This is a comment
            "token_limit": 5000
        }
        """
        result = strip_jsonc_comments(jsonc)
        assert "//" not in result
        assert json.loads(result) == {"token_limit": 5000}

    def test_multi_line_comments(self):
        """Test that multi-line comments are stripped."""
        jsonc = """
        {
            /* Budget for
               the session */
            "token_limit": 5000
        }
        """
        result = strip_jsonc_comments(jsonc)
        assert "/*" not in result
        assert json.loads(result) == {"token_limit": 5000}

    def test_markers_inside_strings_survive(self):
        jsonc = '{"database_path": "//share/db", "note": "a /* b */ c"} // trailing'
        assert json.loads(strip_jsonc_comments(jsonc)) == {
            "database_path": "//share/db",
            "note": "a /* b */ c",
        }

    def test_escaped_quote_in_string(self):
        jsonc = '{"note": "say \\"hi\\" // not a comment"}'
        assert json.loads(strip_jsonc_comments(jsonc)) == {"note": 'say "hi" // not a comment'}


class TestConfigModels:
    """Test Pydantic config models."""

    def test_defaults(self):
        """Test that ContextRotConfig has correct defaults."""
        config = ContextRotConfig()
        assert config.token_limit == 100000
        assert config.database_path == ".context_rot/context.db"
        assert config.health.utilization_warning == 70
        assert config.health.utilization_critical == 90
        assert config.health.drift_warning == 0.3
        assert config.health.drift_critical == 0.6
        assert config.compaction.preserve_recent == 5
        assert config.compaction.auto_preserve_recent == 10
        assert config.compaction.relevance_thresholds == {
            "summarize": 0.5,
            "selective": 0.3,
            "aggressive": 0.2,
        }
        assert config.drift.window == 10
        assert config.drift.requirement_capture_messages == 5

    def test_token_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            ContextRotConfig(token_limit=0)

    def test_threshold_ordering(self):
        with pytest.raises(ValidationError):
            HealthThresholds(utilization_warning=95, utilization_critical=90)
        with pytest.raises(ValidationError):
            HealthThresholds(drift_warning=0.7)

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            DriftConfig(windw=3)
        with pytest.raises(ValidationError):
            CompactionConfig(strategy="summarize")

    def test_scoring_word_range(self):
        with pytest.raises(ValidationError):
            SentenceScoringPolicy(min_words=10, max_words=5)

    def test_thresholds_are_independent_copies(self):
        first = CompactionConfig()
        first.relevance_thresholds["summarize"] = 0.9
        assert CompactionConfig().relevance_thresholds["summarize"] == 0.5


class TestMergeConfigs:
    """Test deep merging."""

    def test_nested_merge(self):
        base = {"token_limit": 1000, "health": {"drift_warning": 0.2, "drift_critical": 0.5}}
        override = {"health": {"drift_critical": 0.8}}
        assert merge_configs(base, override) == {
            "token_limit": 1000,
            "health": {"drift_warning": 0.2, "drift_critical": 0.8},
        }

    def test_base_unchanged(self):
        base = {"drift": {"window": 5}}
        merge_configs(base, {"drift": {"window": 8}})
        assert base == {"drift": {"window": 5}}


class TestConfigLoading:
    """Test configuration file loading."""

    def test_load_empty_config(self, temp_dir):
        """Test loading with no config file."""
        config = load_config(temp_dir, home=temp_dir / "home")
        assert config == ContextRotConfig()

    def test_load_json_config(self, temp_dir):
        (temp_dir / "context_rot.json").write_text(json.dumps({
            "token_limit": 8000,
            "compaction": {"preserve_recent": 2},
        }))

        config = load_config(temp_dir, home=temp_dir / "home")
        assert config.token_limit == 8000
        assert config.compaction.preserve_recent == 2
        assert config.compaction.auto_preserve_recent == 10

    def test_load_jsonc_config(self, temp_dir):
        (temp_dir / "context_rot.jsonc").write_text("""
        {
            // Small budget for tests
            "token_limit": 2000,
            /* Drift windows */
            "drift": {
                "window": 4  // recent messages
            }
        }
        """)

        config = load_config(temp_dir, home=temp_dir / "home")
        assert config.token_limit == 2000
        assert config.drift.window == 4

    def test_dot_directory_config(self, temp_dir):
        (temp_dir / ".context_rot").mkdir()
        (temp_dir / ".context_rot" / "context_rot.jsonc").write_text('{"token_limit": 3000}')
        assert load_config(temp_dir, home=temp_dir / "home").token_limit == 3000

    def test_config_file_precedence(self, temp_dir):
        """Test that context_rot.jsonc takes precedence."""
        (temp_dir / "context_rot.json").write_text(json.dumps({"token_limit": 1111}))
        (temp_dir / "context_rot.jsonc").write_text(json.dumps({"token_limit": 2222}))

        assert load_config(temp_dir, home=temp_dir / "home").token_limit == 2222

    def test_project_overrides_global(self, temp_dir):
        home = temp_dir / "home"
        (home / ".context_rot").mkdir(parents=True)
        (home / ".context_rot" / "context_rot.jsonc").write_text(json.dumps({
            "token_limit": 50000,
            "health": {"drift_warning": 0.2},
        }))
        project = temp_dir / "project"
        project.mkdir()
        (project / "context_rot.json").write_text(json.dumps({"token_limit": 9000}))

        config = load_config(project, home=home)
        assert config.token_limit == 9000
        assert config.health.drift_warning == 0.2

    def test_invalid_json_is_skipped(self, temp_dir, caplog):
        bad = temp_dir / "context_rot.json"
        bad.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert load_config_file(bad) is None
        assert "Failed to load config" in caplog.text

    def test_non_object_is_skipped(self, temp_dir):
        path = temp_dir / "context_rot.json"
        path.write_text("[1, 2, 3]")
        assert load_config_file(path) is None

    def test_missing_file(self, temp_dir):
        assert load_config_file(temp_dir / "nope.json") is None

    def test_invalid_values_raise(self, temp_dir):
        (temp_dir / "context_rot.json").write_text(json.dumps({"token_limit": -5}))
        with pytest.raises(ValidationError):
            load_config(temp_dir, home=temp_dir / "home")


class TestConfigCache:
    """Test configuration caching."""

    def test_cache_returns_same_instance(self, temp_dir):
        """Test that get_config returns cached instance."""
        get_config.cache_clear()

        config1 = get_config(temp_dir)
        config2 = get_config(temp_dir)

        assert config1 is config2

    def test_cache_clear(self, temp_dir):
        """Test that cache can be cleared."""
        get_config.cache_clear()
        config1 = get_config(temp_dir)

        get_config.cache_clear()
        config2 = get_config(temp_dir)

        assert config1 == config2
        assert config1 is not config2


class TestEnvironmentOverrides:
    """CONTEXT_ROT_* variables win over files."""

    def test_env_overrides_collects_set_values(self):
        assert env_overrides({"CONTEXT_ROT_TOKEN_LIMIT": "4096", "CONTEXT_ROT_DATABASE": ""}) == {
            "token_limit": "4096"
        }

    def test_env_beats_project_file(self, temp_dir, monkeypatch):
        (temp_dir / "context_rot.json").write_text(json.dumps({"token_limit": 9000}))
        monkeypatch.setenv("CONTEXT_ROT_TOKEN_LIMIT", "4096")
        monkeypatch.setenv("CONTEXT_ROT_DATABASE", ":memory:")

        config = load_config(temp_dir, home=temp_dir / "home")
        assert config.token_limit == 4096
        assert config.database_path == ":memory:"

    def test_invalid_env_value(self, temp_dir, monkeypatch):
        monkeypatch.setenv("CONTEXT_ROT_TOKEN_LIMIT", "lots")
        with pytest.raises(ValidationError):
            load_config(temp_dir, home=temp_dir / "home")


class TestSearchPaths:
    """Where configuration is looked up."""

    def test_order(self, temp_dir):
        global_path, project_paths = config_search_paths(temp_dir / "proj", temp_dir / "home")
        assert global_path == temp_dir / "home" / ".context_rot" / "context_rot.jsonc"
        assert project_paths == [
            temp_dir / "proj" / "context_rot.jsonc",
            temp_dir / "proj" / "context_rot.json",
            temp_dir / "proj" / ".context_rot" / "context_rot.jsonc",
        ]
