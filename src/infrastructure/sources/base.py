"""
State Source のインターフェース定義。
"""

from __future__ import annotations

from typing import Protocol

from domain import StatusSnapshot

DEFAULT_RESULT_LIMIT = 10000


class StatusSource(Protocol):
    """
    PBM の現在状態を StatusSnapshot として取得する。

    取得はアトミックに扱い、一部のみ成功した状態を返してはならない。
    失敗時は StatusSourceError のサブクラスを送出する。
    """

    def fetch_status(self) -> StatusSnapshot:
        ...
