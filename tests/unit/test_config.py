"""
Unit tests for the configuration system.

Tests the layered configuration loading:
1. Default values
2. YAML config file overrides
3. Environment variable overrides
"""
import os
from unittest.mock import patch


class TestConfigHelpers:
    """Tests for configuration helper functions."""

    def test_get_nested_simple(self):
        from servicebot.core.config import _get_nested

        d = {"a": {"b": {"c": "value"}}}
        assert _get_nested(d, "a", "b", "c") == "value"

    def test_get_nested_missing_key(self):
        from servicebot.core.config import _get_nested

        assert _get_nested({"a": {"b": "value"}}, "a", "c", default="default") == "default"

    def test_get_nested_none_value(self):
        """None counts as missing."""
        from servicebot.core.config import _get_nested

        assert _get_nested({"a": {"b": None}}, "a", "b", default="default") == "default"

    def test_get_nested_through_scalar(self):
        from servicebot.core.config import _get_nested

        assert _get_nested({"a": "flat"}, "a", "b", default="default") == "default"

    def test_as_bool(self):
        from servicebot.core.config import _as_bool

        assert _as_bool(True) is True
        assert _as_bool("yes") is True
        assert _as_bool("1") is True
        assert _as_bool("false") is False
        assert _as_bool("") is False

    def test_as_list(self):
        from servicebot.core.config import _as_list

        assert _as_list("1, 2,,3") == ["1", "2", "3"]
        assert _as_list([1, 2]) == ["1", "2"]
        assert _as_list(None) == []


class TestEnvOrYaml:
    """Tests for _env_or_yaml precedence function."""

    def test_env_var_takes_precedence(self):
        from servicebot.core.config import _env_or_yaml

        yaml_config = {"section": {"key": "yaml_value"}}

        with patch.dict(os.environ, {"TEST_KEY": "env_value"}):
            assert _env_or_yaml("TEST_KEY", yaml_config, "section", "key", default="default") == "env_value"

    def test_yaml_takes_precedence_over_default(self):
        from servicebot.core.config import _env_or_yaml

        yaml_config = {"section": {"key": "yaml_value"}}

        with patch.dict(os.environ, {}, clear=True):
            assert _env_or_yaml("TEST_KEY_YAML", yaml_config, "section", "key", default="default") == "yaml_value"

    def test_default_used_when_no_override(self):
        from servicebot.core.config import _env_or_yaml

        with patch.dict(os.environ, {}, clear=True):
            assert _env_or_yaml("TEST_KEY_DEFAULT", {}, "section", "key", default="default") == "default"


class TestYamlLoading:
    def test_missing_file(self, tmp_path):
        from servicebot.core.config import _load_yaml_config

        assert _load_yaml_config(tmp_path / "config.yml") == {}

    def test_reads_file(self, tmp_path):
        from servicebot.core.config import _load_yaml_config

        path = tmp_path / "config.yml"
        path.write_text("llm:\n  model_name: local-model\n  max_context_turns: 5\n")

        assert _load_yaml_config(path) == {"llm": {"model_name": "local-model", "max_context_turns": 5}}

    def test_invalid_yaml_is_ignored(self, tmp_path):
        from servicebot.core.config import _load_yaml_config

        path = tmp_path / "config.yml"
        path.write_text("llm: [unclosed\n")

        assert _load_yaml_config(path) == {}


class TestSettings:
    def test_max_context_entries_unset(self):
        from servicebot.core.config import settings

        assert settings.llm.max_context_turns is None
        assert settings.max_context_entries is None

    def test_max_context_entries_from_turns(self, monkeypatch):
        from servicebot.core.config import settings

        monkeypatch.setattr(settings.llm, "max_context_turns", 5)
        assert settings.max_context_entries == 10

    def test_session_defaults(self):
        from servicebot.core.config import settings

        assert settings.sessions.backend == "memory"
        assert settings.logs_path == settings.paths.logs
