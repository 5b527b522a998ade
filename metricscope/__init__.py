"""Chart data preparation for the market metrics dashboard."""

from .version import APP_VERSION

__all__ = ["APP_VERSION"]
