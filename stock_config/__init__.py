"""
stock_config -- single public entrypoint for stock settings.

Responsibility:
    ``get_active_settings()`` is the only way runtime code obtains
    configuration. The kernel never imports this package; bridges
    translate settings into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``ValueError`` -- a value failed validation.

Every successful call emits a ``stock_config_loaded`` log entry with the
source path and checksum, tying evaluations to the settings that governed
them.
"""

from __future__ import annotations

from pathlib import Path

from stock_config.bridges import build_category_map, build_policy
from stock_config.loader import load_settings
from stock_config.schema import StockSettings
from stock_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults" / "stock_settings.yaml"


def get_active_settings(config_path: Path | None = None) -> StockSettings:
    """Load and validate settings from ``config_path`` (default: bundled file)."""
    path = Path(config_path) if config_path is not None else DEFAULT_SETTINGS_PATH
    settings = load_settings(path)
    _logger.info(
        "stock_config_loaded",
        extra={
            "source_path": settings.source_path,
            "checksum": settings.checksum,
            "default_cooldown_minutes": settings.stock_critical.default_cooldown_minutes,
            "synonym_count": len(settings.categories.synonyms),
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "StockSettings",
    "build_category_map",
    "build_policy",
    "get_active_settings",
]
