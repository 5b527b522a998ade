"""Configuration loading utilities for the metrics dashboard backend."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs/settings.yaml")


class SourceSettings(BaseModel):
    base_url: str = "http://localhost:3000"
    timeout: float = Field(15.0, gt=0.0)
    max_attempts: int = Field(3, ge=1)
    backoff_seconds: float = Field(0.5, ge=0.0)


class ChartSettings(BaseModel):
    default_count: int = Field(60, ge=1)
    preset_periods: List[int] = Field(default_factory=lambda: [7, 14, 30, 60, 90, 180])
    tick_count: int = Field(5, ge=2, le=20)
    default_coin_id: int = Field(22691, ge=1)


class TokenSettings(BaseModel):
    id: int
    label: str
    address: Optional[str] = None


def _default_tokens() -> List[TokenSettings]:
    return [
        TokenSettings(id=7083, label="UNI", address="0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"),
        TokenSettings(id=22691, label="STRK", address="0x1c5db575e2ff833e46a2d0edd194b331a52efb9a"),
        TokenSettings(id=1437, label="ZEC", address="0x1c5db575e2ff833e46a2d0edd194b331a52efb9a"),
        TokenSettings(id=1839, label="BNB", address="0xB8c77482e45F1F44dE1745F52C74426C631bDD52"),
        TokenSettings(id=32196, label="HYPE", address="0xa477be503f3d608f8688f3cd66b56af0f2cf0509"),
        TokenSettings(id=38299, label="AVNT", address="0x696f9436b67233384889472cd7cd58a6fb5df4f1"),
        TokenSettings(id=38462, label="ASTER"),
        TokenSettings(id=27789, label="BASE", address="0x90cbe4bdd538d6e9b379bff5fe72c3d67a521de5"),
    ]


class Settings(BaseModel):
    source: SourceSettings = Field(default_factory=SourceSettings)
    chart: ChartSettings = Field(default_factory=ChartSettings)
    tokens: List[TokenSettings] = Field(default_factory=_default_tokens)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Path | str | None = None) -> Settings:
    """Load application settings from YAML and environment variables.

    An explicit ``path`` must exist. Without one the default
    ``configs/settings.yaml`` is used when present and built-in defaults
    otherwise.
    """
    load_dotenv()
    if path is None:
        raw = _load_yaml(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else {}
    else:
        raw = _load_yaml(Path(path))
    settings = Settings.model_validate(raw)

    # allow overriding via environment variables
    source_url = os.getenv("METRICSCOPE_SOURCE_URL")
    count = os.getenv("METRICSCOPE_COUNT")
    if source_url:
        settings.source.base_url = source_url.rstrip("/")
    if count:
        try:
            settings.chart.default_count = max(1, int(count))
        except ValueError:
            pass
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
