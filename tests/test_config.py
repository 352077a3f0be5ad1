"""
Tests for the configuration loader.
"""

from pathlib import Path

import pytest
import yaml

from devsetup.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    dump_config,
    find_config_file,
    load_config,
)
from devsetup.core.models.fact import InstallPolicy


class TestFindConfig:
    def test_found_in_target(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE).write_text("version: 1\n")
        assert find_config_file(tmp_path) == (tmp_path / CONFIG_FILE).resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_config_file(tmp_path) is None

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / CONFIG_FILE).write_text("version: 1\n")
        assert find_config_file() is not None


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path):
        config = load_config(target=tmp_path)
        assert config.dependencies == ["express", "dotenv", "axios"]

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE).write_text("")
        config = load_config(target=tmp_path)
        assert config.manifest.patcher == "jq"

    def test_overrides(self, tmp_path: Path):
        path = tmp_path / "team.yml"
        path.write_text(
            "dependencies: [express]\n"
            "dev_dependencies: []\n"
            "system_packages:\n"
            "  - name: ffmpeg\n"
            "    policy: always-refresh\n"
            "manifest:\n"
            "  patcher: builtin\n"
            "  scripts:\n"
            "    start: node index.js\n"
            "use_sudo: false\n"
        )
        config = load_config(path)
        assert config.dependencies == ["express"]
        assert config.dev_dependencies == []
        assert config.system_packages[0].policy == InstallPolicy.ALWAYS_REFRESH
        assert config.manifest.scripts == {"start": "node index.js"}
        assert config.use_sudo is False

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("dependencies: [express\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("- express\n- axios\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_schema_violation(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("directories: ['/var/www']\n")
        with pytest.raises(ConfigError, match="Invalid provisioning configuration"):
            load_config(path)


class TestDumpConfig:
    def test_roundtrip(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE
        path.write_text("dependencies: [express, axios]\n")
        config = load_config(path)

        dumped = dump_config(config)
        data = yaml.safe_load(dumped)
        assert data["dependencies"] == ["express", "axios"]
        assert data["system_packages"][0]["policy"] == "skip-if-present"

        path.write_text(dumped)
        assert load_config(path) == config
