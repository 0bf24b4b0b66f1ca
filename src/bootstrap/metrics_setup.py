"""
メトリクスレジストリの初期化ロジック。
"""

from __future__ import annotations

from typing import Any, Mapping

from prometheus_client import CollectorRegistry

from infrastructure.metrics import PrometheusMetricsRegistry

from .container import InvalidConfigurationError, MetricsConfigurator


class PrometheusMetricsConfigurator(MetricsConfigurator):
    """
    エクスポータ専用の CollectorRegistry を生成する。

    グローバルな ``prometheus_client.REGISTRY`` は使用せず、エクスポータが書き込んだ系列のみを出力する。
    """

    EXPECTED_PROVIDER = "prometheus"

    def configure(self, config: Mapping[str, Any]) -> PrometheusMetricsRegistry:
        provider = _require_string(config, "provider")
        if provider != self.EXPECTED_PROVIDER:
            raise InvalidConfigurationError(
                f"provider '{provider}' は PrometheusMetricsConfigurator では扱えません。"
            )

        options = config.get("options", {})
        if not isinstance(options, Mapping):
            raise InvalidConfigurationError("metrics.options は Mapping である必要があります。")

        process_collector = options.get("process_collector", False)
        if not isinstance(process_collector, bool):
            raise InvalidConfigurationError("metrics.options.process_collector は真偽値である必要があります。")

        metrics_registry = PrometheusMetricsRegistry(registry=CollectorRegistry())
        if process_collector:
            metrics_registry.register_process_collectors()
        return metrics_registry


def _require_string(config: Mapping[str, Any], key: str) -> str:
    if key not in config:
        raise InvalidConfigurationError(f"metrics 設定に '{key}' が存在しません。")
    value = config[key]
    if not isinstance(value, str) or not value:
        raise InvalidConfigurationError(f"metrics 設定の '{key}' は非空の str である必要があります。")
    return value
