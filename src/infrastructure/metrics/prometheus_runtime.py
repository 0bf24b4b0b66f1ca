"""
Prometheus 実装に依存した MetricsRegistry。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Gauge as PrometheusGauge,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from .prometheus_exporter import Gauge, MetricsRegistry


class _GaugeAdapter(Gauge):
    def __init__(self, resolve: Callable[[], PrometheusGauge]) -> None:
        self._resolve = resolve

    def set(self, value: float, labels: Mapping[str, str] | None = None) -> None:
        metric = self._resolve()
        if labels:
            metric.labels(**labels).set(value)
        else:
            metric.set(value)

    def inc(self, value: float = 1.0, labels: Mapping[str, str] | None = None) -> None:
        metric = self._resolve()
        if labels:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def _normalize_label_names(labels: Sequence[str] | None) -> tuple[str, ...]:
    if not labels:
        return ()
    return tuple(dict.fromkeys(labels))


@dataclass
class PrometheusMetricsRegistry(MetricsRegistry):
    """
    prometheus-client を利用する MetricsRegistry 実装。

    ラベルなしゲージは最初の書き込み時に登録されるため、一度も値を設定していない系列は出力されない。
    """

    registry: CollectorRegistry = field(default_factory=CollectorRegistry)
    content_type: str = CONTENT_TYPE_LATEST

    _gauges: dict[tuple[str, tuple[str, ...]], PrometheusGauge] = field(default_factory=dict, init=False)

    def gauge(self, name: str, documentation: str, labels: tuple[str, ...] | None = None) -> Gauge:
        label_names = _normalize_label_names(labels)

        def resolve() -> PrometheusGauge:
            return self._get_or_create(name, documentation, label_names)

        if label_names:
            resolve()
        return _GaugeAdapter(resolve)

    def render(self) -> bytes:
        return generate_latest(self.registry)

    def register_process_collectors(self) -> None:
        """
        プロセス・プラットフォーム情報のコレクタを登録する。
        """

        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)

    def _get_or_create(self, name: str, documentation: str, label_names: tuple[str, ...]) -> PrometheusGauge:
        key = (name, label_names)
        metric = self._gauges.get(key)
        if metric is None:
            metric = PrometheusGauge(name, documentation, labelnames=label_names, registry=self.registry)
            self._gauges[key] = metric
        return metric
