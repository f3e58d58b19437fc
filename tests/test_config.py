from pathlib import Path

import pytest

from consumption.config import DEFAULT_SETTINGS, load_settings
from consumption.exceptions import ConfigError


def test_missing_file_returns_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "missing.yaml"))
    assert settings == DEFAULT_SETTINGS
    assert settings.unified_sheet_name == "Dados de Consumo"


def test_load_settings_overrides_and_ignores_unknown_keys(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "energy_sheet_keywords: [Eletricidade]\nexport_prefix: consumo_\ntheme: escuro\n",
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.energy_sheet_keywords == ("eletricidade",)
    assert settings.water_sheet_keywords == DEFAULT_SETTINGS.water_sheet_keywords
    assert settings.export_prefix == "consumo_"
    assert not hasattr(settings, "theme")


def test_settings_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("log_level: DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("CONSUMO_SETTINGS", str(path))
    assert load_settings().log_level == "DEBUG"


def test_invalid_document_raises(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- apenas\n- uma lista\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(str(path))


def test_bundled_settings_match_defaults():
    assert load_settings(str(Path(__file__).resolve().parents[1] / "config" / "settings.yaml")) == DEFAULT_SETTINGS
