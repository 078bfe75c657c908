# Author: PB
# Maintainer: PB
# Original date: 2025.07.03
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_config.py

from pathlib import Path

import pytest
import yaml

from gitmarks.config.manager import (
    USER_CFG,
    SyncConfig,
    _load_merged_config_data,
    load_merged_config,
    validate_config,
)
from gitmarks.system.exceptions import ConfigError


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point every config search location into tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("GITMARKS_CONFIG_HOME", str(tmp_path / "override"))
    return tmp_path


def write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))
    return path


class TestSyncConfig:
    def test_defaults(self):
        config = SyncConfig()
        assert config.git_root is None
        assert config.force is False
        assert config.progress is True
        assert config.git_command == "git"
        assert config.pool_size >= 2

    def test_workers_override_pool_size(self):
        assert SyncConfig(workers=3).pool_size == 3

    def test_workers_must_be_positive(self):
        with pytest.raises(ValueError):
            SyncConfig(workers=0)

    def test_expands_home(self):
        config = SyncConfig(git_root="~/marks")
        assert config.git_root == Path.home() / "marks"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "cfg" / USER_CFG
        SyncConfig(git_root=tmp_path / "git", force=True, workers=2).save(path)
        data = yaml.safe_load(path.read_text())
        assert "local_log" not in data
        loaded = SyncConfig.load(path)
        assert loaded.git_root == tmp_path / "git"
        assert loaded.force is True
        assert loaded.workers == 2

    def test_load_invalid(self, tmp_path):
        path = write_yaml(tmp_path / USER_CFG, {"workers": "many"})
        with pytest.raises(ConfigError):
            SyncConfig.load(path)


class TestMerge:
    def test_later_files_override(self, tmp_path):
        first = write_yaml(tmp_path / "a" / USER_CFG, {"force": True, "workers": 2})
        second = write_yaml(tmp_path / "b" / USER_CFG, {"workers": 8})
        data, found = _load_merged_config_data((first, second))
        assert data == {"force": True, "workers": 8}
        assert found == [str(first), str(second)]

    def test_missing_and_relative_paths_skipped(self, tmp_path):
        data, found = _load_merged_config_data((Path("gitmarks") / USER_CFG, tmp_path / "none.yml"))
        assert data == {}
        assert found == []

    def test_broken_yaml_is_skipped(self, tmp_path, log_messages):
        broken = tmp_path / USER_CFG
        broken.write_text("force: [unclosed\n")
        data, found = _load_merged_config_data((broken,))
        assert data == {}
        assert any("Failed to load config" in m for m in log_messages)

    def test_non_mapping_rejected(self, tmp_path):
        path = write_yaml(tmp_path / USER_CFG, ["a", "b"])
        with pytest.raises(ConfigError):
            _load_merged_config_data((path,))

    def test_load_merged_config(self, isolated_config):
        write_yaml(isolated_config / "home" / ".config" / "gitmarks" / USER_CFG, {"workers": 2})
        write_yaml(isolated_config / "override" / USER_CFG, {"progress": False})
        config = load_merged_config()
        assert config.workers == 2
        assert config.progress is False

    def test_load_merged_config_defaults(self, isolated_config):
        assert load_merged_config().workers is None


class TestValidate:
    def test_valid(self, tmp_path):
        assert validate_config(SyncConfig(git_root=tmp_path, local_log=tmp_path / "logs")) == []

    def test_git_root_is_file(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("")
        errors = validate_config(SyncConfig(git_root=target))
        assert len(errors) == 1
        assert "git_root" in errors[0]

    def test_relative_log_dir(self):
        errors = validate_config(SyncConfig(local_log="logs"))
        assert errors == ["local_log path must be absolute: logs"]

    def test_reports_load_errors(self, isolated_config):
        write_yaml(isolated_config / "override" / USER_CFG, {"workers": -1})
        errors = validate_config()
        assert len(errors) == 1
        assert errors[0].startswith("Error in config")
