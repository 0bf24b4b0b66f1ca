"""
ロギング初期化ロジック。
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping

from .container import InvalidConfigurationError, LoggingConfigurator


class DictConfigLoggingConfigurator(LoggingConfigurator):
    """
    標準ライブラリの ``logging.config.dictConfig`` を用いたロギング初期化。

    ``level_override`` が指定された場合は、dictConfig 適用後にルートロガーのレベルを上書きする。
    """

    def __init__(self, *, level_override: str | None = None) -> None:
        self._level_override = level_override

    def configure(self, config: Mapping[str, Any]) -> None:
        if "version" not in config:
            raise InvalidConfigurationError("logging 設定に 'version' が存在しません。")

        try:
            logging.config.dictConfig(_to_plain_dict(config))
        except (ValueError, TypeError, AttributeError) as exc:
            raise InvalidConfigurationError("logging 設定の適用に失敗しました。") from exc

        if self._level_override:
            level = logging.getLevelName(self._level_override.upper())
            if not isinstance(level, int):
                raise InvalidConfigurationError(f"ログレベル '{self._level_override}' は不正です。")
            logging.getLogger().setLevel(level)


def _to_plain_dict(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """
    ネストされた Mapping を標準の dict に変換するヘルパー。
    """

    result: dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            result[key] = _to_plain_dict(value)
        else:
            result[key] = value
    return result
