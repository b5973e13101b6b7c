"""Tests for environment-based settings."""

from __future__ import annotations

import pytest

from cancerpredict.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORT", "CANCERPREDICT_PORT", "CANCERPREDICT_THRESHOLD", "CANCERPREDICT_DEVICE"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = get_settings()
        assert settings.port == 3000
        assert settings.max_file_size == 1_000_000
        assert settings.allowed_content_types == ["image/jpeg", "image/png"]
        assert settings.input_size == 224
        assert settings.threshold == 50.0
        assert settings.predictions_path == "predictions.json"
        assert settings.model_repo_id is None

    def test_plain_port_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "8080")
        assert get_settings().port == 8080

    def test_prefixed_port_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("CANCERPREDICT_PORT", "9090")
        assert get_settings().port == 9090

    def test_prefixed_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CANCERPREDICT_THRESHOLD", "75.5")
        monkeypatch.setenv("CANCERPREDICT_DEVICE", "cuda")
        settings = get_settings()
        assert settings.threshold == 75.5
        assert settings.device == "cuda"

    def test_threshold_out_of_range_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CANCERPREDICT_THRESHOLD", "150")
        with pytest.raises(ValueError):
            get_settings()

    def test_init_by_field_name(self) -> None:
        assert Settings(port=1234).port == 1234
