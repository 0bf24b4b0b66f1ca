"""
アプリケーション層パッケージ初期化。
"""

from .services import ProjectionContext, StatusProjector
from .usecases import ScrapeError, ScrapeResult, ScrapeService, ScrapeUseCase

__all__ = [
    "ProjectionContext",
    "StatusProjector",
    "ScrapeError",
    "ScrapeResult",
    "ScrapeService",
    "ScrapeUseCase",
]
