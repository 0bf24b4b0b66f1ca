"""
バックアップ（スナップショット）レコードのドメインエンティティ。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

ERROR_STATUS = "error"


@dataclass(frozen=True)
class BackupRecord:
    """
    PBM が保持するスナップショット1件分の状態。

    Attributes:
        name: 作成時刻を表すソート可能な識別子（RFC 3339 形式）。
        status: ソース側で定義されるステータス文字列。値の集合は固定されない。
    """

    name: str
    status: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("backup.name は必須です。")
        if not self.status:
            raise ValueError("backup.status は必須です。")

    @property
    def is_error(self) -> bool:
        """ステータスが ``error`` と完全一致する場合のみ True。"""

        return self.status == ERROR_STATUS

    def created_at(self) -> datetime | None:
        """
        バックアップ名を作成時刻として解釈する。

        Returns:
            datetime | None: タイムゾーン付きの作成時刻。解釈できない場合は None。
        """

        return parse_backup_timestamp(self.name)


def parse_backup_timestamp(value: str) -> datetime | None:
    normalized = value.strip()
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
