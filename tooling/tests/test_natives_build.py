"""Tests for natives_tooling.build.natives_build."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest


def _write_config(root: Path, text: str) -> None:
    (root / "natives.yaml").write_text(text)


class TestBuildNativesWithOptions:
    def test_returns_1_when_manifest_missing(self, tmp_path: Path, make_runner) -> None:
        from natives_tooling.build import build_natives_with_options

        rc = build_natives_with_options(
            tmp_path, libname="storage", platforms=["linux-x86-64"], runner=make_runner()
        )
        assert rc == 1

    def test_returns_1_without_libname(self, tmp_path: Path, crate_dir: Path, capsys) -> None:
        from natives_tooling.build import build_natives_with_options

        rc = build_natives_with_options(
            tmp_path, config_path=None, platforms=["linux-x86-64"]
        )
        assert rc == 1
        assert "libname is required" in capsys.readouterr().err

    def test_unknown_platform_returns_1_and_runs_nothing(
        self, tmp_path: Path, crate_dir: Path, make_runner, capsys
    ) -> None:
        from natives_tooling.build import build_natives_with_options

        _write_config(tmp_path, "libname: storage\nmanifest: native/Cargo.toml\n")
        runner = make_runner()
        rc = build_natives_with_options(
            tmp_path, platforms=["linux-x86-64", "linux-riscv64"], runner=runner
        )
        assert rc == 1
        assert runner.commands == []
        err = capsys.readouterr().err
        assert "Unknown platform 'linux-riscv64'" in err
        assert "darwin-aarch64, darwin-x86-64, linux-aarch64, linux-x86-64, win32-x86-64" in err

    def test_builds_from_config_and_writes_report(
        self, tmp_path: Path, crate_dir: Path, make_runner, capsys, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from natives_tooling.build import build_natives_with_options

        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        _write_config(
            tmp_path,
            "libname: storage\n"
            "manifest: native/Cargo.toml\n"
            "destination: build/resources\n"
            "platforms: [linux-x86-64, darwin-aarch64]\n",
        )
        runner = make_runner(
            "aarch64-apple-darwin",
            artifacts={
                "x86_64-unknown-linux-gnu": ["libstorage.so"],
                "aarch64-apple-darwin": ["libstorage.dylib"],
            },
        )
        report = tmp_path / "reports" / "natives.json"
        rc = build_natives_with_options(tmp_path, report_path=report, runner=runner)
        assert rc == 0
        root = tmp_path.resolve()
        assert (root / "build/resources/software/linux/amd64/libstorage.so").is_file()
        assert (root / "build/resources/software/darwin/arm64/libstorage.dylib").is_file()
        payload = json.loads(report.read_text())
        assert payload["ok"] is True
        assert {t["platform"] for t in payload["tasks"]} == {"linux-x86-64", "darwin-aarch64"}
        out = capsys.readouterr().out
        assert "✅ linux-x86-64: libstorage.so" in out

    def test_cli_values_override_config(self, tmp_path: Path, crate_dir: Path, make_runner) -> None:
        from natives_tooling.build import build_natives_with_options

        _write_config(
            tmp_path,
            "libname: storage\nmanifest: native/Cargo.toml\nplatforms: [darwin-aarch64]\n",
        )
        runner = make_runner("x86_64-unknown-linux-gnu")
        rc = build_natives_with_options(
            tmp_path,
            platforms=["linux-x86-64"],
            profile="debug",
            channel="nightly",
            runner=runner,
        )
        assert rc == 0
        assert runner.commands == [["cargo", "+nightly", "build"]]

    def test_failure_returns_1_and_reports_skipped(
        self, tmp_path: Path, crate_dir: Path, make_runner, capsys, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from natives_tooling.build import build_natives_with_options

        summary = tmp_path / "summary.md"
        monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary))
        _write_config(tmp_path, "libname: storage\nmanifest: native/Cargo.toml\n")
        runner = make_runner("x86_64-unknown-linux-gnu", fail={"x86_64-unknown-linux-gnu": 101})
        rc = build_natives_with_options(
            tmp_path, platforms=["linux-x86-64", "win32-x86-64"], jobs=1, runner=runner
        )
        assert rc == 1
        err = capsys.readouterr().err
        assert "exit code 101" in err
        assert "could not compile" in err
        assert "win32-x86-64: skipped (run aborted)" in err
        assert "## Native builds" in summary.read_text()

    def test_missing_explicit_config(self, tmp_path: Path, make_runner, capsys) -> None:
        from natives_tooling.build import build_natives_with_options

        rc = build_natives_with_options(
            tmp_path, config_path=Path("nope.yaml"), runner=make_runner()
        )
        assert rc == 1
        assert "nope.yaml" in capsys.readouterr().err

    def test_staging_os_error_returns_1_and_writes_report(
        self, tmp_path: Path, crate_dir: Path, make_runner, capsys, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from natives_tooling.build import build_natives_with_options

        monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)
        _write_config(tmp_path, "libname: storage\nmanifest: native/Cargo.toml\n")
        runner = make_runner(artifacts={"x86_64-unknown-linux-gnu": ["libstorage.so"]})
        report = tmp_path / "natives.md"
        with patch("natives_tooling.build.task.shutil.copy2", side_effect=PermissionError(13, "Permission denied")):
            rc = build_natives_with_options(
                tmp_path, platforms=["linux-x86-64"], report_path=report, runner=runner
            )
        assert rc == 1
        assert "Permission denied" in capsys.readouterr().err
        assert "❌ failed" in report.read_text()
