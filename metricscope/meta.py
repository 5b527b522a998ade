"""Static metadata for the dashboard: preset tokens and metric field names."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from .config import TokenSettings, get_settings


class Meta:
    """Holds application-wide lookups shared by the API and the CLI."""

    METRIC_TO_COINS_KEY: Dict[str, str] = {
        "volume": "volume",
        "mcap": "marketCap",
        "token-turnover": "tokenTurnover",
    }

    @classmethod
    def iter_tokens(cls) -> Iterable[TokenSettings]:
        """Return the configured preset tokens in display order."""

        return tuple(get_settings().tokens)

    @classmethod
    def token_label(cls, coin_id: int) -> Optional[str]:
        for token in cls.iter_tokens():
            if token.id == coin_id:
                return token.label
        return None

    @classmethod
    def token_address(cls, coin_id: int) -> Optional[str]:
        """Resolve the ERC-20 contract address used by the token flows endpoint."""

        for token in cls.iter_tokens():
            if token.id == coin_id:
                return token.address
        return None

    @classmethod
    def coins_key(cls, metric: str) -> str:
        return cls.METRIC_TO_COINS_KEY.get(metric, metric)
