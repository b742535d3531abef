from __future__ import annotations

from pathlib import Path

import pytest

from uidiff.config.loader import ConfigLoader
from uidiff.config.schema import DiffConfig


@pytest.fixture()
def suite_config() -> DiffConfig:
    config_path = Path(__file__).resolve().parents[1] / "config" / "uidiff.json"
    return ConfigLoader.load(config_path)


@pytest.fixture()
def default_config() -> DiffConfig:
    return DiffConfig()
