"""
State Source 実装の公開API。
"""

from .base import DEFAULT_RESULT_LIMIT, StatusSource
from .cli import CliSourceConfig, PbmCliStatusSource, parse_status_document
from .exceptions import MalformedStatusError, SourceConnectionError, StatusSourceError
from .mongo import MongoSourceConfig, MongoStatusSource

__all__ = [
    "DEFAULT_RESULT_LIMIT",
    "StatusSource",
    "CliSourceConfig",
    "PbmCliStatusSource",
    "parse_status_document",
    "MalformedStatusError",
    "SourceConnectionError",
    "StatusSourceError",
    "MongoSourceConfig",
    "MongoStatusSource",
]
