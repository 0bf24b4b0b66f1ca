"""
PITR（継続的ポイントインタイムリカバリ）関連のドメインエンティティ。
"""

from __future__ import annotations

from dataclasses import dataclass

PITR_HEARTBEAT_GRACE_SECONDS = 30


@dataclass(frozen=True)
class PITRLock:
    """
    PITR キャプチャを担当するノードのハートビート。

    Attributes:
        heartbeat: ハートビートの上位タイムスタンプ（UNIX 秒）。
        replica_set: ロックを保持するレプリカセット名（取得できた場合のみ）。
        node: ロックを保持するノード（取得できた場合のみ）。
    """

    heartbeat: int
    replica_set: str | None = None
    node: str | None = None

    def is_stale(self, now: int, *, grace_seconds: int = PITR_HEARTBEAT_GRACE_SECONDS) -> bool:
        """ハートビート + 猶予 が現在時刻より前であれば古いと判定する。"""

        return self.heartbeat + grace_seconds < now


@dataclass(frozen=True)
class PITRChunk:
    """
    継続キャプチャされたリカバリセグメント。
    """

    start_ts: int
    end_ts: int

    def __post_init__(self) -> None:
        if self.end_ts < self.start_ts:
            raise ValueError("pitr chunk の end_ts は start_ts 以上である必要があります。")
