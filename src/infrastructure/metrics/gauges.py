"""
エクスポータが公開するゲージ群の定義。
"""

from __future__ import annotations

from dataclasses import dataclass

from .prometheus_exporter import Gauge, MetricsRegistry


@dataclass(frozen=True)
class ExporterGauges:
    """
    PBM の状態を射影する先のゲージハンドル。

    系列名・ラベル名はダッシュボードやアラートが参照する契約であり、変更しないこと。
    """

    snapshots_total: Gauge
    snapshots: Gauge
    last_snapshot: Gauge
    last_snapshot_error: Gauge
    last_snapshot_since_seconds: Gauge
    nodes_total: Gauge
    nodes: Gauge
    pitr_chunks_total: Gauge
    pitr_error: Gauge
    last_pitr_chunk_since_seconds: Gauge

    @classmethod
    def register(cls, registry: MetricsRegistry) -> "ExporterGauges":
        return cls(
            snapshots_total=registry.gauge(
                "pbm_snapshots_total",
                "Number of snapshots per status",
                labels=("status",),
            ),
            snapshots=registry.gauge(
                "pbm_snapshots",
                "Detail of snapshots with statuses",
                labels=("name", "status"),
            ),
            last_snapshot=registry.gauge(
                "pbm_last_snapshot",
                "Status of last snapshot",
                labels=("status",),
            ),
            last_snapshot_error=registry.gauge(
                "pbm_last_snapshot_error",
                "1 if last snapshot is in error",
            ),
            last_snapshot_since_seconds=registry.gauge(
                "pbm_last_snapshot_since_seconds",
                "Time since last snapshot",
            ),
            nodes_total=registry.gauge(
                "pbm_nodes_total",
                "Number of nodes per status",
                labels=("status",),
            ),
            nodes=registry.gauge(
                "pbm_nodes",
                "Detail of nodes with statuses",
                labels=("rs", "host", "status"),
            ),
            pitr_chunks_total=registry.gauge(
                "pbm_pitr_chunks_total",
                "Number of PITR chunks",
            ),
            pitr_error=registry.gauge(
                "pbm_pitr_error",
                "1 if PITR is in error",
            ),
            last_pitr_chunk_since_seconds=registry.gauge(
                "pbm_last_pitr_chunk_since_seconds",
                "Time since last PITR chunk",
            ),
        )
