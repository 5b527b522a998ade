"""Transport adapters for the metrics service."""

from .source import DataSourceError, InvalidPayloadError, MetricsSourceClient, UnknownTokenError

__all__ = [
    "DataSourceError",
    "InvalidPayloadError",
    "MetricsSourceClient",
    "UnknownTokenError",
]
