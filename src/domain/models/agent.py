"""
クラスタメンバー（pbm-agent）のドメインエンティティ。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

NODE_STATUS_OK = "ok"
NODE_STATUS_ERROR = "error"
NODE_STATUSES: tuple[str, ...] = (NODE_STATUS_OK, NODE_STATUS_ERROR)


@dataclass(frozen=True)
class NodeIdentity:
    """
    メトリクスのラベルとして利用するノード識別子。
    """

    replica_set: str
    host: str


@dataclass(frozen=True)
class AgentRecord:
    """
    レプリカセットメンバー1台分の健全性。

    Attributes:
        replica_set: レプリカセット名。
        node: メンバー識別子（host:port）。
        health: サブ健全性フラグ（エージェント、ノード疎通、ストレージ疎通など）。
    """

    replica_set: str
    node: str
    health: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.replica_set:
            raise ValueError("agent.replica_set は必須です。")
        if not self.node:
            raise ValueError("agent.node は必須です。")

    @property
    def host(self) -> str:
        """``<replica_set>/<node>`` 形式の複合ホスト識別子。"""

        return f"{self.replica_set}/{self.node}"

    @property
    def identity(self) -> NodeIdentity:
        return NodeIdentity(replica_set=self.replica_set, host=self.host)

    @property
    def status(self) -> str:
        """
        全てのサブ健全性フラグが True の場合のみ ``ok``、それ以外は ``error``。
        """

        if self.health and all(self.health.values()):
            return NODE_STATUS_OK
        return NODE_STATUS_ERROR
