"""
API 層のエントリーポイント。
"""

from .deps import APIContainer, ApiDependencies, configure_dependencies
from .router import create_api_app

__all__ = [
    "APIContainer",
    "ApiDependencies",
    "configure_dependencies",
    "create_api_app",
]
