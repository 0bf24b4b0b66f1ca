"""
State Source 関連の例外定義。
"""

from __future__ import annotations


class StatusSourceError(RuntimeError):
    """State Source が発生させる基底例外。"""


class SourceConnectionError(StatusSourceError):
    """リトライ後も State Source に接続できない。"""


class MalformedStatusError(StatusSourceError):
    """取得したデータが不完全、または期待する形式ではない。"""
