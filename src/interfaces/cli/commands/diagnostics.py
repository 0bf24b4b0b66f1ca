"""
診断用 CLI コマンド。
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from application.usecases import ScrapeError
from bootstrap import BootstrapError
from infrastructure.sources import StatusSourceError
from runtime import ExporterComponents, bootstrap, build_exporter_components

app = typer.Typer(help="診断・ヘルスチェックコマンド")


def _build(project_root: Path | None) -> ExporterComponents:
    try:
        return build_exporter_components(bootstrap(project_root))
    except BootstrapError as exc:
        typer.secho(f"起動に失敗しました: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc


@app.command("status")
def status(
    project_root: Path | None = typer.Option(None, "--project-root", help="configs/ を含むディレクトリ"),
) -> None:
    """
    State Source から1度だけ状態を取得し、要約を JSON で表示する。
    """

    components = _build(project_root)
    try:
        snapshot = components.source.fetch_status()
    except StatusSourceError as exc:
        typer.secho(f"状態の取得に失敗しました: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps(snapshot.summary(), indent=2, ensure_ascii=False))


@app.command("scrape")
def scrape(
    project_root: Path | None = typer.Option(None, "--project-root", help="configs/ を含むディレクトリ"),
) -> None:
    """
    スクレイプを1度実行し、出力されるメトリクスを表示する。
    """

    components = _build(project_root)
    try:
        result = components.scrape_usecase.execute()
    except ScrapeError as exc:
        typer.secho(f"スクレイプに失敗しました ({exc.phase}): {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(result.body.decode("utf-8"), nl=False)
