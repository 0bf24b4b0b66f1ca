from __future__ import annotations

from pathlib import Path

import pytest

from bootstrap import (
    BootstrapContainer,
    DictConfigLoggingConfigurator,
    InvalidConfigurationError,
    MissingConfigurationError,
    PrometheusMetricsConfigurator,
    YamlConfigLoader,
)
from infrastructure.sources import MongoStatusSource, PbmCliStatusSource
from runtime import ServerSettings, bootstrap, build_status_source, project_root


def _write_configs(root: Path, *, server: str = "server:\n  port: 9090\n") -> Path:
    base = root / "configs" / "base"
    base.mkdir(parents=True)
    (base / "logging.yaml").write_text("logging:\n  version: 1\n  disable_existing_loggers: false\n", encoding="utf-8")
    (base / "metrics.yaml").write_text("metrics:\n  provider: prometheus\n", encoding="utf-8")
    (base / "server.yaml").write_text(server, encoding="utf-8")
    (base / "source.yaml").write_text("source:\n  kind: mongo\n  mongo:\n    database: admin\n", encoding="utf-8")
    return root


def test_loads_bundled_configuration() -> None:
    bundle = YamlConfigLoader(project_root(), environ={}).load()

    settings = ServerSettings.from_bundle(bundle)
    assert settings.port == 9090
    assert settings.host == "0.0.0.0"
    assert bundle.require_value("source", "kind") == "mongo"


def test_environment_overlay_is_merged() -> None:
    bundle = YamlConfigLoader(project_root(), environ={"SERVICE_ENV": "dev"}).load()

    logging_config = bundle.require_section("logging")
    assert logging_config["loggers"]["pbm_exporter"]["level"] == "DEBUG"
    assert logging_config["root"]["level"] == "INFO"


def test_port_and_source_overrides(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)

    bundle = YamlConfigLoader(root, environ={"PORT": "9216", "PBM_STATUS_SOURCE": "cli"}).load()

    assert bundle.require_value("server", "port") == 9216
    assert bundle.require_value("source", "kind") == "cli"


@pytest.mark.parametrize("environ", [{"PORT": "not-a-port"}, {"PORT": "70000"}, {"PBM_STATUS_SOURCE": "ftp"}])
def test_invalid_overrides_are_rejected(tmp_path: Path, environ: dict[str, str]) -> None:
    root = _write_configs(tmp_path)

    with pytest.raises(InvalidConfigurationError):
        YamlConfigLoader(root, environ=environ).load()


def test_overlay_cannot_introduce_new_keys(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)
    overlay = root / "configs" / "envs" / "staging"
    overlay.mkdir(parents=True)
    (overlay / "server.yaml").write_text("server:\n  workers: 4\n", encoding="utf-8")

    with pytest.raises(InvalidConfigurationError):
        YamlConfigLoader(root, environment="staging", environ={}).load()


def test_missing_base_directory(tmp_path: Path) -> None:
    with pytest.raises(MissingConfigurationError):
        YamlConfigLoader(tmp_path, environ={}).load()


def test_bootstrap_requires_mongodb_uri(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)

    with pytest.raises(MissingConfigurationError) as exc_info:
        bootstrap(root, environ={"PBM_MONGODB_URI": "  "})

    assert "PBM_MONGODB_URI" in str(exc_info.value)


def test_bootstrap_returns_context(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)

    context = bootstrap(root, environ={"PBM_MONGODB_URI": "mongodb://pbm@db:27017"})

    assert context.mongodb_uri == "mongodb://pbm@db:27017"
    assert context.metrics_registry.render() == b""


def test_container_checks_uri_before_loading(tmp_path: Path) -> None:
    loaded: list[Path] = []

    def factory(path: Path) -> YamlConfigLoader:
        loaded.append(path)
        return YamlConfigLoader(path, environ={})

    container = BootstrapContainer(
        project_root=tmp_path,
        config_loader_factory=factory,
        logging_configurator=DictConfigLoggingConfigurator(),
        metrics_configurator=PrometheusMetricsConfigurator(),
        environ={},
    )

    with pytest.raises(MissingConfigurationError):
        container.initialize()
    assert loaded == []


def test_build_status_source_selects_by_kind(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)
    mongo_bundle = YamlConfigLoader(root, environ={}).load()
    cli_bundle = YamlConfigLoader(root, environ={"PBM_STATUS_SOURCE": "cli"}).load()

    assert isinstance(build_status_source(mongo_bundle, mongodb_uri="mongodb://db"), MongoStatusSource)
    assert isinstance(build_status_source(cli_bundle, mongodb_uri="mongodb://db"), PbmCliStatusSource)


def test_invalid_source_options_fail_at_startup(tmp_path: Path) -> None:
    root = _write_configs(tmp_path)
    (root / "configs" / "base" / "source.yaml").write_text(
        "source:\n  kind: mongo\n  mongo:\n    max_pool_size: 0\n", encoding="utf-8"
    )
    bundle = YamlConfigLoader(root, environ={}).load()

    with pytest.raises(InvalidConfigurationError):
        build_status_source(bundle, mongodb_uri="mongodb://db")


def test_log_level_override_is_validated() -> None:
    configurator = DictConfigLoggingConfigurator(level_override="chatty")

    with pytest.raises(InvalidConfigurationError):
        configurator.configure({"version": 1, "disable_existing_loggers": False})


def test_metrics_configurator_rejects_unknown_provider() -> None:
    with pytest.raises(InvalidConfigurationError):
        PrometheusMetricsConfigurator().configure({"provider": "otel"})
    with pytest.raises(InvalidConfigurationError):
        PrometheusMetricsConfigurator().configure({"provider": "prometheus", "options": {"process_collector": "yes"}})
