"""
uvicorn によるエクスポータの起動処理。
"""

from __future__ import annotations

import logging
import math

import uvicorn
from fastapi import FastAPI

from application.usecases import ScrapeError, ScrapeUseCase
from runtime import ServerSettings

LOGGER = logging.getLogger("pbm_exporter.server")


class ServerError(RuntimeError):
    """HTTP サーバの起動・停止に失敗した。"""


def warm_up(usecase: ScrapeUseCase) -> bool:
    """
    起動時に1度スクレイプを実行する。失敗しても起動は継続する。
    """

    try:
        usecase.execute()
    except ScrapeError as exc:
        LOGGER.warning("Initial metrics update failed (phase=%s): %s", exc.phase, exc)
        return False
    return True


def run_server(app: FastAPI, settings: ServerSettings) -> None:
    """
    HTTP サーバを起動し、SIGINT / SIGTERM を受け取るまでブロックする。

    シグナル受信後は新規接続を受け付けず、処理中のスクレイプの完了を待ってから戻る。

    Raises:
        ServerError: サーバの起動またはシャットダウンに失敗した場合。
    """

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=math.ceil(settings.graceful_timeout_seconds),
    )
    server = uvicorn.Server(config)
    LOGGER.info("Prometheus exporter serving metrics on http://%s:%d/metrics", settings.host, settings.port)
    try:
        server.run()
    except (OSError, RuntimeError) as exc:
        raise ServerError(f"HTTP サーバの実行に失敗しました: {exc}") from exc
    except SystemExit as exc:
        raise ServerError(f"HTTP サーバが異常終了しました (code={exc.code})。") from exc
    if not server.started:
        raise ServerError("HTTP サーバを起動できませんでした。")
    LOGGER.info("Server exited")
