"""Tests for prowl.config_loader — prowl.yaml / prowl.toml merging."""

from __future__ import annotations

from pathlib import Path

import pytest

from prowl._errors import ConfigError
from prowl.config_loader import load_config


class TestLoadConfig:
    """load_config — file config merged with overrides."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.prefix == "/__prowl"
        assert config.port == 3030

    def test_yaml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: 4000\ntransport: long-poll\n")
        config = load_config(tmp_path)
        assert config.port == 4000
        assert config.transport == "long-poll"

    def test_yaml_prowl_section_wins(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yml").write_text("port: 4000\nprowl:\n  port: 5000\n  prefix: /_live\n")
        config = load_config(tmp_path)
        assert config.port == 5000
        assert config.prefix == "/_live"

    def test_unrelated_top_level_keys_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("title: My Site\nprowl:\n  port: 4100\n")
        assert load_config(tmp_path).port == 4100

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.toml").write_text('[prowl]\ntransport = "long-poll"\nreload_interval_ms = 200\n')
        config = load_config(tmp_path)
        assert config.transport == "long-poll"
        assert config.reload_interval_ms == 200

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: 4000\n")
        (tmp_path / "prowl.toml").write_text("port = 5000\n")
        assert load_config(tmp_path).port == 4000

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: 4000\nhost: 0.0.0.0\n")
        config = load_config(tmp_path, port=9000)
        assert config.port == 9000
        assert config.host == "0.0.0.0"

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: 4000\n")
        assert load_config(tmp_path, port=None, prefix=None).port == 4000

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("")
        assert load_config(tmp_path).port == 3030


class TestLoadConfigErrors:
    """Malformed or invalid configuration raises ConfigError."""

    def test_unknown_key_in_section(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("prowl:\n  colour: blue\n")
        with pytest.raises(ConfigError, match="colour"):
            load_config(tmp_path)

    def test_unknown_override(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown prowl config keys"):
            load_config(tmp_path, workers=4)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("port: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(tmp_path)

    def test_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.toml").write_text("port = \n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(tmp_path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "prowl.yaml").write_text("transport: websocket\n")
        with pytest.raises(ConfigError, match="transport"):
            load_config(tmp_path)
