"""
ユースケースの公開API。
"""

from .scrape import ScrapeError, ScrapeResult, ScrapeService, ScrapeUseCase

__all__ = [
    "ScrapeError",
    "ScrapeResult",
    "ScrapeService",
    "ScrapeUseCase",
]
