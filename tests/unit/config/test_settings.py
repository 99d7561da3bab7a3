# tests/unit/config/test_settings.py
"""Tests for config/settings.py: typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cloudbatch.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_directories_derive_from_documents(self, tmp_path):
        s = Settings(_env_file=None, documents_path=tmp_path)
        assert s.intake_path == tmp_path / "input"
        assert s.output_path == tmp_path / "results"
        assert s.archive_path == tmp_path / "bin"
        assert s.tracking_path == tmp_path / "results" / "sf_tracking.json"

    def test_default_documents_is_home(self):
        s = Settings(_env_file=None)
        assert s.documents_root == Path("~/Documents").expanduser()

    def test_batch_defaults(self):
        s = Settings(_env_file=None)
        assert s.anchor_suffix == ".bin"
        assert s.member_suffix == ".txt"
        assert s.result_suffix == "_result"
        assert s.member_matching == "loose"
        assert s.completion_timeout_seconds == 10.0

    def test_sheets_disabled_by_default(self):
        assert Settings(_env_file=None).sheets_enabled is False

    def test_summary_defaults(self):
        s = Settings(_env_file=None)
        assert s.summary_backend == "rule"
        assert s.summary_timeout_seconds == 15.0


class TestDirectoryOverrides:
    def test_explicit_dirs_win(self, tmp_path):
        s = Settings(
            _env_file=None,
            documents_path=tmp_path / "docs",
            input_dir=tmp_path / "drop",
            archive_dir=tmp_path / "done",
        )
        assert s.intake_path == tmp_path / "drop"
        assert s.archive_path == tmp_path / "done"
        assert s.output_path == tmp_path / "docs" / "results"

    def test_env_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCUMENTS_PATH", str(tmp_path))
        monkeypatch.setenv("MEMBER_MATCHING", "strict")
        monkeypatch.setenv("COMPLETION_TIMEOUT_SECONDS", "2.5")
        s = Settings(_env_file=None)
        assert s.documents_root == tmp_path
        assert s.member_matching == "strict"
        assert s.completion_timeout_seconds == 2.5


class TestSettingsValidation:
    def test_suffix_needs_dot(self):
        with pytest.raises(ConfigurationError, match="ANCHOR_SUFFIX"):
            Settings(_env_file=None, anchor_suffix="bin")

    def test_suffixes_must_differ(self):
        with pytest.raises(ConfigurationError, match="must differ"):
            Settings(_env_file=None, anchor_suffix=".TXT", member_suffix=".txt")

    def test_llm_backend_needs_provider(self):
        with pytest.raises(ConfigurationError, match="LLM_PROVIDER"):
            Settings(_env_file=None, summary_backend="llm", llm_provider="")

    @pytest.mark.parametrize("field", [
        "completion_timeout_seconds",
        "reconcile_interval_seconds",
        "summary_timeout_seconds",
    ])
    def test_non_positive_timeouts(self, field):
        with pytest.raises(ValidationError, match="must be > 0"):
            Settings(_env_file=None, **{field: 0})

    def test_unknown_matching_policy(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, member_matching="fuzzy")

    def test_multiple_errors_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, anchor_suffix="bin", member_suffix="txt")
        assert "ANCHOR_SUFFIX" in str(exc_info.value)
        assert "MEMBER_SUFFIX" in str(exc_info.value)


class TestLoadSettings:
    def test_overrides(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)  # no stray .env
        s = load_settings(documents_path=tmp_path, completion_timeout_seconds=1.0)
        assert s.intake_path == tmp_path / "input"
        assert s.completion_timeout_seconds == 1.0
