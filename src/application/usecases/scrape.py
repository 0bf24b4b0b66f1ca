"""
スクレイプ1回分（取得・射影・出力）のユースケース。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar

from application.services.projection import ProjectionContext, StatusProjector
from domain import StatusSnapshot
from infrastructure.metrics import MetricsRegistry
from infrastructure.sources import StatusSource

LOGGER = logging.getLogger("pbm_exporter.scrape")

PHASE_FETCH = "fetch"
PHASE_PROJECT = "project"
PHASE_RENDER = "render"

_T = TypeVar("_T")


class ScrapeError(RuntimeError):
    """
    スクレイプが失敗したことを表す例外。

    Attributes:
        phase: 失敗したフェーズ（fetch / project / render）。
    """

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(message)
        self.phase = phase


@dataclass(frozen=True)
class ScrapeResult:
    """
    テキスト形式で出力したメトリクス。
    """

    body: bytes
    content_type: str


class ScrapeUseCase(Protocol):
    """
    スクレイプ要求のハンドラ。
    """

    def execute(self) -> ScrapeResult:
        ...


class ScrapeService(ScrapeUseCase):
    """
    State Source から取得したスナップショットを射影し、レジストリを出力する実装。

    取得から出力までを ``context.lock`` で直列化する。並行するスクレイプは
    前のスクレイプの完了を待つ。
    """

    def __init__(
        self,
        *,
        source: StatusSource,
        projector: StatusProjector,
        context: ProjectionContext,
        registry: MetricsRegistry,
    ) -> None:
        self._source = source
        self._projector = projector
        self._context = context
        self._registry = registry

    def execute(self) -> ScrapeResult:
        with self._context.lock:
            snapshot: StatusSnapshot = _run_phase(PHASE_FETCH, self._source.fetch_status)
            _run_phase(PHASE_PROJECT, lambda: self._projector.project(snapshot, self._context))
            body = _run_phase(PHASE_RENDER, self._registry.render)
        return ScrapeResult(body=body, content_type=self._registry.content_type)


def _run_phase(phase: str, action: Callable[[], _T]) -> _T:
    try:
        return action()
    except Exception as exc:
        LOGGER.error("Scrape failed during %s phase: %s", phase, exc, exc_info=True)
        raise ScrapeError(phase, f"スクレイプの {phase} フェーズで失敗しました: {exc}") from exc
