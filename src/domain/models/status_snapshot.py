"""
1回のスクレイプで取得する PBM 状態のスナップショット。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .agent import AgentRecord
from .backup import BackupRecord
from .pitr import PITRChunk, PITRLock


@dataclass(frozen=True)
class PBMConfig:
    """
    PBM ツール全体の設定のうち、エクスポータが参照する項目。
    """

    pitr_enabled: bool = False


@dataclass(frozen=True)
class StatusSnapshot:
    """
    State Source から取得した時点の PBM 状態。

    スクレイプごとに生成・破棄され、リクエストを跨いで共有されない。

    Attributes:
        config: ツール設定。
        backups: 名前の降順（新しい順）に並んだバックアップ。
        agents: クラスタメンバーごとの健全性。
        pitr_lock: PITR ハートビート。存在しない場合は None。
        pitr_chunks_total: PITR チャンク数（概算値で可）。
        pitr_chunks: 最新チャンクの候補。先頭ほどソース側の返却順が早い。
    """

    config: PBMConfig
    backups: Sequence[BackupRecord] = field(default_factory=tuple)
    agents: Sequence[AgentRecord] = field(default_factory=tuple)
    pitr_lock: PITRLock | None = None
    pitr_chunks_total: int = 0
    pitr_chunks: Sequence[PITRChunk] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.config is None:
            raise ValueError("config は必須です。")
        if self.pitr_chunks_total < 0:
            raise ValueError("pitr_chunks_total は 0 以上である必要があります。")

    @property
    def last_backup(self) -> BackupRecord | None:
        """並び順の先頭のバックアップ（最新）。"""

        return self.backups[0] if self.backups else None

    @property
    def last_pitr_chunk(self) -> PITRChunk | None:
        """
        end_ts が最大のチャンクを返す。同値の場合はソースが先に返したものを採用する。
        """

        if not self.pitr_chunks:
            return None
        return sorted(self.pitr_chunks, key=lambda chunk: chunk.end_ts, reverse=True)[0]

    def summary(self) -> dict[str, object]:
        """診断出力用の要約。"""

        last_backup = self.last_backup
        last_chunk = self.last_pitr_chunk
        return {
            "pitr_enabled": self.config.pitr_enabled,
            "backups": len(self.backups),
            "last_backup": {"name": last_backup.name, "status": last_backup.status} if last_backup else None,
            "agents": [
                {"rs": agent.replica_set, "host": agent.host, "status": agent.status} for agent in self.agents
            ],
            "pitr_heartbeat": self.pitr_lock.heartbeat if self.pitr_lock else None,
            "pitr_chunks_total": self.pitr_chunks_total,
            "last_pitr_chunk_end": last_chunk.end_ts if last_chunk else None,
        }
