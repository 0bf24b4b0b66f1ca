"""
アプリケーションサービスの公開API。
"""

from .projection import ProjectionContext, StatusProjector

__all__ = [
    "ProjectionContext",
    "StatusProjector",
]
