"""
FastAPI アプリケーションのルート設定。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from application.usecases import ScrapeError
from interfaces.api.deps import APIContainer

LOGGER = logging.getLogger("pbm_exporter.api")


def create_api_app() -> FastAPI:
    app = FastAPI(
        title="pbm-exporter",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.include_router(_create_router())
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    return app


def _create_router() -> APIRouter:
    router = APIRouter()

    @router.get("/metrics")
    def get_metrics() -> Response:
        deps = APIContainer.resolve()
        try:
            result = deps.scrape_usecase.execute()
        except ScrapeError as exc:
            LOGGER.error("failed to serve prometheus /metrics (phase=%s)", exc.phase)
            return Response(status_code=500)
        return Response(content=result.body, media_type=result.content_type)

    return router


async def _http_exception_handler(request: Request, exc: Exception) -> Response:
    # /metrics 以外のパス・GET 以外のメソッドは全て 404 として本文なしで返す
    status_code = getattr(exc, "status_code", 500)
    if status_code in (404, 405):
        status_code = 404
    return Response(status_code=status_code)
