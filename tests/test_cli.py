"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import make_bank_dict, write_bank

from bank_processing.cli import build_parser, load_settings, main
from bank_processing.models import ErrorPolicy, ReplayPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BANK_IN_DIR", "BANK_OUT_DIR", "BANK_REPLAY_POLICY", "BANK_ERROR_POLICY", "BANK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_overrides(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(
            [
                "--in-dir",
                str(tmp_path / "in"),
                "--replay-policy",
                "REPLAY_ONLY",
                "--error-policy",
                "SKIP_ITEM",
                "--feature-concurrency",
                "2",
                "--log-level",
                "DEBUG",
            ]
        )

        settings = load_settings(args)

        assert settings.paths.in_dir == tmp_path / "in"
        assert settings.defaults.replay_policy is ReplayPolicy.REPLAY_ONLY
        assert settings.defaults.error_policy is ErrorPolicy.SKIP_ITEM
        assert settings.defaults.feature_concurrency == 2
        assert settings.logging.level == "DEBUG"

    def test_config_file(self, tmp_path: Path) -> None:
        config_path = tmp_path / "bank.toml"
        config_path.write_text('[defaults]\nreplay_policy = "LIVE"\n', encoding="utf-8")

        settings = load_settings(build_parser().parse_args(["--config", str(config_path)]))

        assert settings.defaults.replay_policy is ReplayPolicy.LIVE

    def test_invalid_policy_choice(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--replay-policy", "SOMETIMES"])


class TestMain:
    def test_empty_input_directory(self, tmp_path: Path) -> None:
        in_dir = tmp_path / "in"
        in_dir.mkdir()

        code = main(["--in-dir", str(in_dir), "--out-dir", str(tmp_path / "out"), "--no-progress"])

        assert code == 0
        assert (tmp_path / "out").is_dir()

    def test_missing_input_directory(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["--in-dir", str(tmp_path / "nope"), "--out-dir", str(tmp_path / "out"), "--no-progress"])

        assert code == 1
        assert "Input directory not found" in capsys.readouterr().err

    def test_failed_bank(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        in_dir = tmp_path / "in"
        write_bank(in_dir, "lesson", make_bank_dict([{"provider": "unknown", "options": {}}], ["labas"]))

        code = main(["--in-dir", str(in_dir), "--out-dir", str(tmp_path / "out"), "--no-progress"])

        assert code == 1
        err = capsys.readouterr().err
        assert "1 bank(s) failed" in err
        assert "[lesson] Missing plugins for providers: unknown" in err

    def test_missing_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--config", str(tmp_path / "nope.toml"), "--no-progress"]) == 1
        assert "Error loading settings" in capsys.readouterr().err
