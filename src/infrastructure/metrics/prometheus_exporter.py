"""
メトリクスレジストリの抽象。
"""

from __future__ import annotations

from typing import Mapping, Protocol


class Gauge(Protocol):
    def set(self, value: float, labels: Mapping[str, str] | None = None) -> None:
        ...

    def inc(self, value: float = 1.0, labels: Mapping[str, str] | None = None) -> None:
        ...


class MetricsRegistry(Protocol):
    """
    Prometheus レジストリを抽象化。
    """

    content_type: str

    def gauge(self, name: str, documentation: str, labels: tuple[str, ...] | None = None) -> Gauge:
        ...

    def render(self) -> bytes:
        """現在の全系列をテキスト形式で出力する。"""
        ...
