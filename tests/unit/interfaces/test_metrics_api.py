from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from application.usecases import ScrapeError, ScrapeResult
from interfaces.api import APIContainer, create_api_app
from interfaces.api.deps import ApiDependencies, configure_dependencies

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class _StubScrapeUseCase:
    def __init__(self, *, error: ScrapeError | None = None) -> None:
        self.error = error
        self.calls = 0

    def execute(self) -> ScrapeResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return ScrapeResult(body=b'pbm_snapshots_total{status="done"} 3.0\n', content_type=CONTENT_TYPE)


@pytest.fixture(autouse=True)
def _reset_container() -> Iterator[None]:
    yield
    APIContainer.reset()


def _client(usecase: _StubScrapeUseCase) -> TestClient:
    configure_dependencies(ApiDependencies(scrape_usecase=usecase))
    return TestClient(create_api_app())


def test_metrics_endpoint_returns_exposition() -> None:
    usecase = _StubScrapeUseCase()
    client = _client(usecase)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE
    assert response.text == 'pbm_snapshots_total{status="done"} 3.0\n'
    assert usecase.calls == 1


def test_each_request_triggers_a_scrape() -> None:
    usecase = _StubScrapeUseCase()
    client = _client(usecase)

    client.get("/metrics")
    client.get("/metrics")

    assert usecase.calls == 2


def test_scrape_failure_returns_empty_500() -> None:
    client = _client(_StubScrapeUseCase(error=ScrapeError("fetch", "unreachable")))

    response = client.get("/metrics")

    assert response.status_code == 500
    assert response.content == b""


@pytest.mark.parametrize("path", ["/", "/metrics/", "/health", "/docs", "/openapi.json"])
def test_other_paths_are_not_found(path: str) -> None:
    usecase = _StubScrapeUseCase()
    client = _client(usecase)

    response = client.get(path, follow_redirects=False)

    assert response.status_code == 404
    assert response.content == b""
    assert usecase.calls == 0


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
def test_other_methods_are_not_found(method: str) -> None:
    usecase = _StubScrapeUseCase()
    client = _client(usecase)

    response = client.request(method, "/metrics")

    assert response.status_code == 404
    assert response.content == b""
    assert usecase.calls == 0
