from __future__ import annotations

import json
import logging
from pathlib import Path

from uidiff.config.schema import DiffConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and validates the JSON comparison configuration."""

    @staticmethod
    def load(path: str | Path) -> DiffConfig:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        config = DiffConfig.model_validate(payload)
        logger.info("Loaded comparison configuration from %s", config_path)
        return config

    @staticmethod
    def load_or_default(path: str | Path | None) -> DiffConfig:
        if path is None or not Path(path).exists():
            logger.warning("No configuration at %s, using defaults", path)
            return DiffConfig()
        return ConfigLoader.load(path)
