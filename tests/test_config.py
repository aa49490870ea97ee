"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from gcloud_logging_mcp.config import load_config, load_config_data, resolve_config
from gcloud_logging_mcp.models import CLOUD_PLATFORM_SCOPE, ServerConfig


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_without_a_file(self):
        config = load_config()
        assert config == ServerConfig()
        assert config.transport == "stdio"
        assert config.port == 3000
        assert config.scopes == [CLOUD_PLATFORM_SCOPE]
        assert config.credential_retries == 3
        assert config.default_page_size == 10

    def test_load_config_from_yaml_file(self, sample_config_yaml):
        config = load_config(sample_config_yaml)

        assert config.transport == "sse"
        assert config.port == 4000
        assert config.credential_retries == 1
        assert config.retry_delay == 0.5

    def test_unknown_keys_are_rejected(self, tmp_path):
        bad_config = tmp_path / "bad.yaml"
        bad_config.write_text(yaml.dump({"mcp_servers": {}}))

        with pytest.raises(ValidationError):
            load_config(bad_config)

    def test_invalid_transport_is_rejected(self, tmp_path):
        bad_config = tmp_path / "bad.yaml"
        bad_config.write_text(yaml.dump({"transport": "websocket"}))

        with pytest.raises(ValidationError):
            load_config(bad_config)

    def test_substitutes_env_vars(self, tmp_path, monkeypatch):
        """${VAR} references are replaced from the environment."""
        monkeypatch.setenv("LOGGING_MCP_HOST", "0.0.0.0")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"host": "${LOGGING_MCP_HOST}"}))

        assert load_config(config_file).host == "0.0.0.0"

    def test_unset_env_var_left_as_is(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LOGGING_MCP_UNSET", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"host": "${LOGGING_MCP_UNSET}"}))

        assert load_config_data(config_file) == {"host": "${LOGGING_MCP_UNSET}"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_config(config_file) == ServerConfig()

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- stdio\n- sse\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config_data(config_file)


class TestResolveConfig:
    """Tests for precedence between env vars, flags, and the file."""

    def test_defaults(self):
        config = resolve_config(environ={})
        assert config.transport == "stdio"
        assert config.port == 3000

    def test_flags_override_file(self, sample_config_yaml):
        config = resolve_config(sample_config_yaml, transport="stdio", port=5000, environ={})
        assert config.transport == "stdio"
        assert config.port == 5000
        assert config.credential_retries == 1

    def test_env_overrides_flags(self, sample_config_yaml):
        config = resolve_config(
            sample_config_yaml,
            transport="stdio",
            port=5000,
            host="127.0.0.1",
            environ={"MCP_TRANSPORT": "SSE", "PORT": "8080", "MCP_HOST": "0.0.0.0"},
        )
        assert config.transport == "sse"
        assert config.port == 8080
        assert config.host == "0.0.0.0"

    def test_empty_env_values_are_ignored(self):
        config = resolve_config(
            transport="sse", port=4100, environ={"MCP_TRANSPORT": "", "PORT": ""}
        )
        assert config.transport == "sse"
        assert config.port == 4100

    def test_invalid_env_transport(self):
        with pytest.raises(ValidationError):
            resolve_config(environ={"MCP_TRANSPORT": "http"})

    def test_invalid_env_port(self):
        with pytest.raises(ValidationError):
            resolve_config(environ={"PORT": "not-a-port"})

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("MCP_TRANSPORT", "sse")
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("MCP_HOST", raising=False)
        assert resolve_config().transport == "sse"
