"""
インフラ層のパッケージ初期化。
"""

from .metrics import ExporterGauges, MetricsRegistry, PrometheusMetricsRegistry
from .sources import (
    CliSourceConfig,
    MalformedStatusError,
    MongoSourceConfig,
    MongoStatusSource,
    PbmCliStatusSource,
    SourceConnectionError,
    StatusSource,
    StatusSourceError,
)

__all__ = [
    "ExporterGauges",
    "MetricsRegistry",
    "PrometheusMetricsRegistry",
    "CliSourceConfig",
    "MalformedStatusError",
    "MongoSourceConfig",
    "MongoStatusSource",
    "PbmCliStatusSource",
    "SourceConnectionError",
    "StatusSource",
    "StatusSourceError",
]
