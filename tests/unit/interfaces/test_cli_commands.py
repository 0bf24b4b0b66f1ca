from __future__ import annotations

import json
from typing import Any

import pytest
from typer.testing import CliRunner

from domain import AgentRecord, BackupRecord, PBMConfig, StatusSnapshot
from infrastructure.sources import SourceConnectionError
from interfaces.cli.app import create_cli, exporter_version
from interfaces.cli.commands import diagnostics
from runtime import build_exporter_components

runner = CliRunner()


class DummySource:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def fetch_status(self) -> StatusSnapshot:
        if self.error is not None:
            raise self.error
        return StatusSnapshot(
            config=PBMConfig(),
            backups=[BackupRecord(name="2024-01-02T00:00:00Z", status="done")],
            agents=[AgentRecord(replica_set="rs0", node="db-0:27017", health={"pbms": True})],
        )


@pytest.fixture()
def use_source(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PBM_MONGODB_URI", "mongodb://pbm@localhost:27017")
    monkeypatch.delenv("SERVICE_ENV", raising=False)
    monkeypatch.delenv("PBM_STATUS_SOURCE", raising=False)
    monkeypatch.delenv("PORT", raising=False)

    def install(source: DummySource) -> None:
        def build(context: Any, **kwargs: Any):
            return build_exporter_components(context, source=source)

        monkeypatch.setattr(diagnostics, "build_exporter_components", build)

    return install


def test_version_command() -> None:
    result = runner.invoke(create_cli(), ["version"])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"pbm-exporter version {exporter_version()}"


@pytest.mark.parametrize("flag", ["--version", "-v"])
def test_version_flag(flag: str) -> None:
    result = runner.invoke(create_cli(), [flag])

    assert result.exit_code == 0, result.output
    assert "pbm-exporter version" in result.output


def test_missing_uri_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PBM_MONGODB_URI", raising=False)

    result = runner.invoke(create_cli(), ["diagnostics", "status"])

    assert result.exit_code == 1
    assert "PBM_MONGODB_URI" in result.output


def test_serve_fails_fast_without_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PBM_MONGODB_URI", raising=False)

    result = runner.invoke(create_cli(), ["serve"])

    assert result.exit_code == 1


def test_diagnostics_status_prints_summary(use_source) -> None:
    use_source(DummySource())

    result = runner.invoke(create_cli(), ["diagnostics", "status"])

    assert result.exit_code == 0, result.output
    summary = json.loads(result.output)
    assert summary["last_backup"] == {"name": "2024-01-02T00:00:00Z", "status": "done"}
    assert summary["agents"][0]["host"] == "rs0/db-0:27017"


def test_diagnostics_status_reports_source_failure(use_source) -> None:
    use_source(DummySource(error=SourceConnectionError("unreachable")))

    result = runner.invoke(create_cli(), ["diagnostics", "status"])

    assert result.exit_code == 1


def test_diagnostics_scrape_prints_metrics(use_source) -> None:
    use_source(DummySource())

    result = runner.invoke(create_cli(), ["diagnostics", "scrape"])

    assert result.exit_code == 0, result.output
    assert 'pbm_snapshots_total{status="done"} 1.0' in result.output
    assert 'pbm_nodes_total{status="ok"} 1.0' in result.output


def test_diagnostics_scrape_reports_phase(use_source) -> None:
    use_source(DummySource(error=SourceConnectionError("unreachable")))

    result = runner.invoke(create_cli(), ["diagnostics", "scrape"])

    assert result.exit_code == 1
    assert "fetch" in result.output
