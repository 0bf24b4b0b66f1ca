"""
StatusSnapshot をゲージ群へ射影するサービス。

前回までに出力したラベル値は LabelUniverse に記憶し、今回のスナップショットに現れなかった
系列も 0 として出力し続ける。各ステップは後続ステップが更新済みの LabelUniverse を参照する
ため、順序を入れ替えてはならない。
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from domain import NodeIdentity, StatusSnapshot
from domain.models import NODE_STATUSES, PITR_HEARTBEAT_GRACE_SECONDS
from domain.value_objects import LabelUniverse
from infrastructure.metrics import ExporterGauges

LOGGER = logging.getLogger("pbm_exporter.projection")


@dataclass
class ProjectionContext:
    """
    プロセス存続期間中に保持する射影先の状態。

    ``lock`` を保持している間のみ ``universe`` と ``gauges`` を更新すること。

    Attributes:
        gauges: 書き込み先のゲージハンドル。
        universe: これまでに出力したラベル値。
        lock: 事前ゼロ化と設定の一連の処理を直列化するロック。
    """

    gauges: ExporterGauges
    universe: LabelUniverse = field(default_factory=LabelUniverse)
    lock: threading.Lock = field(default_factory=threading.Lock)


class StatusProjector:
    """
    スナップショットからゲージを更新する射影エンジン。

    壁時計の読み取り以外は入力に対して決定的に動作する。
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] | None = None,
        pitr_grace_seconds: int = PITR_HEARTBEAT_GRACE_SECONDS,
    ) -> None:
        self._clock = clock or time.time
        self._pitr_grace_seconds = pitr_grace_seconds

    def project(self, snapshot: StatusSnapshot, context: ProjectionContext) -> None:
        """
        スナップショットを射影する。呼び出し側が ``context.lock`` を保持していること。
        """

        now = self._clock()
        self._project_backups(snapshot, context, now)
        self._project_nodes(snapshot, context)
        if snapshot.config.pitr_enabled:
            self._project_pitr(snapshot, context, now)
        else:
            LOGGER.debug("PITR disabled, keeping previous PITR gauges")

    def _project_backups(self, snapshot: StatusSnapshot, context: ProjectionContext, now: float) -> None:
        gauges = context.gauges
        universe = context.universe

        for status in universe.known_statuses():
            gauges.snapshots_total.set(0, labels={"status": status})
            gauges.last_snapshot.set(0, labels={"status": status})
            for backup in snapshot.backups:
                gauges.snapshots.set(0, labels={"name": backup.name, "status": status})

        for backup in snapshot.backups:
            universe.add_status(backup.status)
            gauges.snapshots_total.inc(1, labels={"status": backup.status})
            gauges.snapshots.set(1, labels={"name": backup.name, "status": backup.status})

        last_backup = snapshot.last_backup
        if last_backup is None:
            return

        gauges.last_snapshot.set(1, labels={"status": last_backup.status})
        gauges.last_snapshot_error.set(1 if last_backup.is_error else 0)

        created_at = last_backup.created_at()
        if created_at is None:
            LOGGER.warning("Backup name '%s' is not a timestamp, skipping age", last_backup.name)
            return
        gauges.last_snapshot_since_seconds.set(round(now - created_at.timestamp()))

    def _project_nodes(self, snapshot: StatusSnapshot, context: ProjectionContext) -> None:
        gauges = context.gauges
        universe = context.universe

        known: dict[NodeIdentity, None] = dict.fromkeys(universe.known_nodes())
        known.update(dict.fromkeys(agent.identity for agent in snapshot.agents))
        for status in NODE_STATUSES:
            gauges.nodes_total.set(0, labels={"status": status})
            for identity in known:
                gauges.nodes.set(
                    0,
                    labels={"rs": identity.replica_set, "host": identity.host, "status": status},
                )

        for agent in snapshot.agents:
            status = agent.status
            universe.add_node(agent.identity)
            gauges.nodes_total.inc(1, labels={"status": status})
            gauges.nodes.set(1, labels={"rs": agent.replica_set, "host": agent.host, "status": status})

    def _project_pitr(self, snapshot: StatusSnapshot, context: ProjectionContext, now: float) -> None:
        gauges = context.gauges
        now_seconds = round(now)

        lock = snapshot.pitr_lock
        stale = lock is None or lock.is_stale(now_seconds, grace_seconds=self._pitr_grace_seconds)
        LOGGER.debug("PITR stale: %s (heartbeat age: %s)", stale, now_seconds - lock.heartbeat if lock else None)
        gauges.pitr_error.set(1 if stale else 0)

        gauges.pitr_chunks_total.set(snapshot.pitr_chunks_total)

        last_chunk = snapshot.last_pitr_chunk
        if last_chunk is not None:
            LOGGER.debug("PITR last chunk delay: %d", now_seconds - last_chunk.end_ts)
            gauges.last_pitr_chunk_since_seconds.set(now_seconds - last_chunk.end_ts)
