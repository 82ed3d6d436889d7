"""Tests for natives_tooling.config."""

from pathlib import Path

import pytest

from natives_tooling.config import (
    DEFAULT_NATIVES_CONFIG,
    find_config,
    load_config,
    resolve_config,
    to_build_request,
)
from natives_tooling.errors import ConfigError


class TestLoadConfig:
    def test_loads_mapping(self, tmp_path: Path) -> None:
        p = tmp_path / "natives.yaml"
        p.write_text("libname: storage\nplatforms:\n  - linux-x86-64\n  - darwin-aarch64\n")
        assert load_config(p) == {"libname": "storage", "platforms": ["linux-x86-64", "darwin-aarch64"]}
        assert find_config(tmp_path) == p

    def test_empty_file_is_empty_mapping(self, tmp_path: Path) -> None:
        p = tmp_path / "natives.yaml"
        p.write_text("")
        assert load_config(p) == {}

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "natives.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(p)

    def test_invalid_yaml_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "natives.yaml"
        p.write_text("libname: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(p)

    def test_find_config_missing(self, tmp_path: Path) -> None:
        assert find_config(tmp_path) is None


class TestResolveConfig:
    def test_defaults(self) -> None:
        assert resolve_config(None) == DEFAULT_NATIVES_CONFIG
        assert resolve_config({})["profile"] == "release"

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            resolve_config({"libname": "x", "targets": [], "arch": "amd64"})
        assert "arch, targets" in str(exc_info.value)

    def test_platforms_from_comma_string(self) -> None:
        cfg = resolve_config({"platforms": "linux-x86-64, darwin-aarch64,"})
        assert cfg["platforms"] == ["linux-x86-64", "darwin-aarch64"]

    def test_bad_types_rejected(self) -> None:
        with pytest.raises(ConfigError, match="verbose"):
            resolve_config({"verbose": "yes"})
        with pytest.raises(ConfigError, match="platforms"):
            resolve_config({"platforms": [1, 2]})
        with pytest.raises(ConfigError, match="profile"):
            resolve_config({"profile": ""})


class TestToBuildRequest:
    def test_paths_relative_to_project_root(self, tmp_path: Path) -> None:
        cfg = resolve_config(
            {
                "libname": "storage",
                "manifest": "native/Cargo.toml",
                "destination": "build/resources",
                "toolchain_channel": "nightly",
                "profile": "debug",
            }
        )
        req = to_build_request(cfg, tmp_path)
        root = tmp_path.resolve()
        assert req.manifest_file == root / "native" / "Cargo.toml"
        assert req.destination_root == root / "build" / "resources"
        assert req.sources_dir == root / "native"
        assert req.toolchain_channel == "nightly"
        assert req.profile == "debug"

    def test_libname_required(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="libname is required"):
            to_build_request(resolve_config({}), tmp_path)
