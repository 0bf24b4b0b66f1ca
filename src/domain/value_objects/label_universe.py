"""
これまでに出力したラベル値の集合を表す値オブジェクト。
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models.agent import NodeIdentity


@dataclass
class LabelUniverse:
    """
    一度出力したラベル値を記憶し、以降のポーリングで 0 として出力し続けるための集合。

    集合は単調増加のみで、削除は行わない。

    Attributes:
        statuses: 観測したバックアップステータス。
        nodes: 観測したノード識別子。
    """

    statuses: set[str] = field(default_factory=set)
    nodes: set[NodeIdentity] = field(default_factory=set)

    def add_status(self, status: str) -> None:
        self.statuses.add(status)

    def add_node(self, identity: NodeIdentity) -> None:
        self.nodes.add(identity)

    def known_statuses(self) -> list[str]:
        """ソート済みのステータス一覧（反復中の変更に影響されないコピー）。"""

        return sorted(self.statuses)

    def known_nodes(self) -> list[NodeIdentity]:
        return sorted(self.nodes, key=lambda node: (node.replica_set, node.host))
