"""
ランタイム依存関係のビルダー。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from application.services import ProjectionContext, StatusProjector
from application.usecases import ScrapeService
from bootstrap import (
    BootstrapContainer,
    BootstrapContext,
    ConfigBundle,
    DictConfigLoggingConfigurator,
    InvalidConfigurationError,
    PrometheusMetricsConfigurator,
    YamlConfigLoader,
)
from infrastructure.metrics import ExporterGauges
from infrastructure.sources import (
    CliSourceConfig,
    MongoSourceConfig,
    MongoStatusSource,
    PbmCliStatusSource,
    StatusSource,
)

LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class ExporterComponents:
    scrape_usecase: ScrapeService
    source: StatusSource
    context: ProjectionContext


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    graceful_timeout_seconds: float

    @staticmethod
    def from_bundle(config: ConfigBundle) -> "ServerSettings":
        section = config.require_section("server")
        return ServerSettings(
            host=str(section["host"]),
            port=int(section["port"]),
            graceful_timeout_seconds=float(section["graceful_timeout_seconds"]),
        )


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def bootstrap(
    root: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> BootstrapContext:
    """
    設定ロード・ロギング初期化・レジストリ生成を行う。

    Raises:
        BootstrapError: 必須の環境変数や設定が欠落している場合。
    """

    env = environ if environ is not None else os.environ
    container = BootstrapContainer(
        project_root=root or project_root(),
        config_loader_factory=lambda path: YamlConfigLoader(path, environ=env),
        logging_configurator=DictConfigLoggingConfigurator(level_override=env.get(LOG_LEVEL_ENV) or None),
        metrics_configurator=PrometheusMetricsConfigurator(),
        environ=env,
    )
    return container.initialize()


def build_status_source(config: ConfigBundle, *, mongodb_uri: str) -> StatusSource:
    """
    ``source.kind`` に応じて State Source 実装を選択する。
    """

    section = config.require_section("source")
    kind = section.get("kind")
    try:
        if kind == "mongo":
            return MongoStatusSource(MongoSourceConfig.from_mapping(section.get("mongo") or {}, uri=mongodb_uri))
        if kind == "cli":
            return PbmCliStatusSource(CliSourceConfig.from_mapping(section.get("cli") or {}, uri=mongodb_uri))
    except ValueError as exc:
        raise InvalidConfigurationError(f"source.{kind} 設定が不正です: {exc}") from exc
    raise InvalidConfigurationError(f"source.kind '{kind}' に対応する State Source が見つかりません。")


def build_exporter_components(
    context: BootstrapContext,
    *,
    source: StatusSource | None = None,
    clock: Callable[[], float] | None = None,
) -> ExporterComponents:
    status_source = source or build_status_source(context.config, mongodb_uri=context.mongodb_uri)
    registry = context.metrics_registry
    projection_context = ProjectionContext(gauges=ExporterGauges.register(registry))
    usecase = ScrapeService(
        source=status_source,
        projector=StatusProjector(clock=clock),
        context=projection_context,
        registry=registry,
    )
    return ExporterComponents(scrape_usecase=usecase, source=status_source, context=projection_context)
