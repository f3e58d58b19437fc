"""Dashboard settings loaded from YAML with built-in defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from .exceptions import ConfigError

DEFAULT_SETTINGS_PATH = "config/settings.yaml"
SETTINGS_ENV_VAR = "CONSUMO_SETTINGS"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Knobs for workbook detection, export naming and logging.

    Attributes
    ----------
    unified_sheet_name : str
        Sheet name that marks a workbook exported by this dashboard.
    energy_sheet_keywords, water_sheet_keywords : tuple of str
        Substrings searched in sheet names of provider workbooks.
    energy_label_keywords, water_label_keywords : tuple of str
        Substrings searched in the ``Origem`` column of unified workbooks.
    export_prefix : str
        Prefix of the downloaded report filename.
    log_level : str
        Level for the ``consumption`` logger.
    log_file : Optional[str]
        Optional rotating log file path.
    """

    unified_sheet_name: str = "Dados de Consumo"
    energy_sheet_keywords: Tuple[str, ...] = ("coelba", "energia", "luz")
    water_sheet_keywords: Tuple[str, ...] = ("embasa", "agua", "water")
    energy_label_keywords: Tuple[str, ...] = ("coelba", "energia")
    water_label_keywords: Tuple[str, ...] = ("embasa", "água")
    export_prefix: str = "relatorio_consumo_"
    log_level: str = "INFO"
    log_file: Optional[str] = None


DEFAULT_SETTINGS = Settings()


def _coerce(name: str, value: Any) -> Any:
    if name.endswith("_keywords"):
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"{name} deve ser uma lista de palavras-chave.")
        return tuple(str(v).lower() for v in value)
    if name == "log_file":
        return str(value) if value else None
    return str(value)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from ``path``, ``$CONSUMO_SETTINGS`` or the default file.

    A missing file yields :data:`DEFAULT_SETTINGS`.  Keys that are not
    settings are ignored with a warning.
    """

    file_path = Path(path or os.getenv(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_PATH)
    if not file_path.exists():
        return DEFAULT_SETTINGS
    with open(file_path, "r", encoding="utf-8") as fp:
        try:
            payload = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Arquivo de configuração inválido: {file_path}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Arquivo de configuração inválido: {file_path}")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(str(k) for k in payload if k not in known)
    if unknown:
        logger.warning("Chaves de configuração ignoradas em %s: %s", file_path, ", ".join(unknown))
    return Settings(**{k: _coerce(k, v) for k, v in payload.items() if k in known})
