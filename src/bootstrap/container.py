"""
アプリケーション全体の初期化を担うDIコンテナ。

設定ロード、ロギング初期化、メトリクスレジストリ生成、環境変数の検証を統括し、
利用側には初期化済みのコンテキストを返す。必須の環境変数が欠落している場合は
スクレイプ時ではなく起動時に失敗させる。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from infrastructure.metrics import PrometheusMetricsRegistry

MONGODB_URI_ENV = "PBM_MONGODB_URI"


class ConfigLoader(Protocol):
    """設定ファイル群を読み込み、検証済みの構成を返すインターフェース。"""

    def load(self) -> "ConfigBundle":
        raise NotImplementedError


class LoggingConfigurator(Protocol):
    """ロギング設定を適用するインターフェース。"""

    def configure(self, config: Mapping[str, Any]) -> None:
        raise NotImplementedError


class MetricsConfigurator(Protocol):
    """メトリクスレジストリを生成するインターフェース。"""

    def configure(self, config: Mapping[str, Any]) -> PrometheusMetricsRegistry:
        raise NotImplementedError


class BootstrapError(RuntimeError):
    """ブートストラップ処理でのエラーを表す基底例外。"""


class MissingConfigurationError(BootstrapError):
    """必須設定が欠落している場合の例外。"""


class InvalidConfigurationError(BootstrapError):
    """設定値が期待する形式ではない場合の例外。"""


@dataclass(frozen=True)
class ConfigBundle:
    """設定 YAML から構築された辞書ラッパー。"""

    root: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """設定の浅いコピーを返す。"""

        return dict(self.root)

    def require_section(self, section: str) -> Mapping[str, Any]:
        """
        指定セクションの存在と型を検証して返す。

        Raises:
            MissingConfigurationError: セクションが存在しない場合。
            InvalidConfigurationError: セクションがマッピングではない場合。
        """

        if section not in self.root:
            raise MissingConfigurationError(f"設定セクション '{section}' が存在しません。")

        value = self.root[section]
        if not isinstance(value, Mapping):
            raise InvalidConfigurationError(
                f"設定セクション '{section}' は Mapping である必要があります。"
            )
        return value

    def require_value(self, section: str, key: str) -> Any:
        """
        指定セクション内のキーの存在と値を検証して返す。

        Raises:
            MissingConfigurationError: キーが存在しない場合。
        """

        mapping = self.require_section(section)
        if key not in mapping:
            raise MissingConfigurationError(f"設定キー '{section}.{key}' が存在しません。")
        return mapping[key]


@dataclass(frozen=True)
class BootstrapContext:
    """
    ブートストラップ処理後に利用側へ渡すコンテキスト。

    Attributes:
        config: 設定バンドル。
        metrics_registry: プロセス存続期間中に利用するメトリクスレジストリ。
        mongodb_uri: State Source への接続文字列。
        environ: 起動時に参照した環境変数。
    """

    config: ConfigBundle
    metrics_registry: PrometheusMetricsRegistry
    mongodb_uri: str
    environ: Mapping[str, str] = field(default_factory=dict)


@dataclass
class BootstrapContainer:
    """
    アプリケーション全体の初期化を司るコンテナ。

    Attributes:
        project_root: プロジェクトのルートパス。
        config_loader_factory: ConfigLoader を生成するファクトリ。
        logging_configurator: ロギング設定適用オブジェクト。
        metrics_configurator: メトリクスレジストリ生成オブジェクト。
        environ: 参照する環境変数。省略時は ``os.environ``。
    """

    project_root: Path
    config_loader_factory: Callable[[Path], ConfigLoader]
    logging_configurator: LoggingConfigurator
    metrics_configurator: MetricsConfigurator
    environ: Mapping[str, str] | None = None

    def initialize(self) -> BootstrapContext:
        """
        環境変数検証・設定ロード・ロギング初期化・メトリクス初期化を順に実行する。

        Raises:
            BootstrapError: 初期化過程での検証エラー。
        """

        environ = dict(self.environ if self.environ is not None else os.environ)
        mongodb_uri = environ.get(MONGODB_URI_ENV, "").strip()
        if not mongodb_uri:
            raise MissingConfigurationError(f"環境変数 '{MONGODB_URI_ENV}' は必須です。")

        config_loader = self.config_loader_factory(self.project_root)
        config_bundle = config_loader.load()

        logging_config = config_bundle.require_section("logging")
        metrics_config = config_bundle.require_section("metrics")

        self.logging_configurator.configure(logging_config)
        metrics_registry = self.metrics_configurator.configure(metrics_config)

        return BootstrapContext(
            config=config_bundle,
            metrics_registry=metrics_registry,
            mongodb_uri=mongodb_uri,
            environ=environ,
        )
