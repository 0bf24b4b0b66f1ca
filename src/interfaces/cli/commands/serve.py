"""
エクスポータの HTTP サーバを起動するコマンド。
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from bootstrap import BootstrapError
from interfaces.api import ApiDependencies, configure_dependencies, create_api_app
from interfaces.api.server import ServerError, run_server, warm_up
from runtime import ServerSettings, bootstrap, build_exporter_components

LOGGER = logging.getLogger("pbm_exporter.cli")


def serve(
    project_root: Path | None = typer.Option(None, "--project-root", help="configs/ を含むディレクトリ"),
) -> None:
    """
    /metrics を公開し、SIGINT / SIGTERM を受け取るまで待機する。
    """

    try:
        context = bootstrap(project_root)
        components = build_exporter_components(context)
    except BootstrapError as exc:
        typer.secho(f"起動に失敗しました: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    configure_dependencies(ApiDependencies(scrape_usecase=components.scrape_usecase))
    settings = ServerSettings.from_bundle(context.config)

    warm_up(components.scrape_usecase)
    try:
        run_server(create_api_app(), settings)
    except ServerError as exc:
        LOGGER.error("Server failed: %s", exc, exc_info=True)
        raise typer.Exit(code=1) from exc
