"""
Typer ベースの CLI エントリーポイント。
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as distribution_version

import typer

from .commands import diagnostics, serve

DISTRIBUTION_NAME = "pbm-exporter"


def exporter_version() -> str:
    try:
        return distribution_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "dev"


def _version_text() -> str:
    return f"pbm-exporter version {exporter_version()}"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(_version_text())
        raise typer.Exit()


def create_cli() -> typer.Typer:
    app = typer.Typer(help="Prometheus exporter for Percona Backup for MongoDB", no_args_is_help=True)

    @app.callback()
    def main_options(
        show_version: bool = typer.Option(
            False,
            "--version",
            "-v",
            callback=_version_callback,
            is_eager=True,
            help="バージョンを表示して終了する",
        ),
    ) -> None:
        pass

    @app.command("version")
    def version() -> None:
        typer.echo(_version_text())

    app.command("serve")(serve.serve)
    app.add_typer(diagnostics.app, name="diagnostics")
    return app


def main() -> None:
    create_cli()()
