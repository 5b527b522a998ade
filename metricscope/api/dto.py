"""DTOs for FastAPI endpoints."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RenderRequest(BaseModel):
    """Raw data-source response(s) posted for offline chart building."""

    payload: Dict[str, Any]
    count: int = Field(60, ge=1)
    days: Optional[int] = Field(None, ge=1)
    start: Optional[int] = Field(None, ge=0)
    end: Optional[int] = Field(None, ge=0)
    metric: str = "volume"
    ticks: int = Field(5, ge=2, le=20)


class TokenInfo(BaseModel):
    id: int
    label: str
    has_flows: bool


class PresetsResponse(BaseModel):
    ok: bool = True
    periods: List[int]
    default_count: int
    default_coin_id: int
    tokens: List[TokenInfo]
    chart_kinds: List[str]
