"""
メトリクス関連の公開API。
"""

from .gauges import ExporterGauges
from .prometheus_exporter import Gauge, MetricsRegistry
from .prometheus_runtime import PrometheusMetricsRegistry

__all__ = [
    "ExporterGauges",
    "Gauge",
    "MetricsRegistry",
    "PrometheusMetricsRegistry",
]
