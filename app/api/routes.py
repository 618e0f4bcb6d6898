from __future__ import annotations

import logging
import time
import uuid

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse

from app.api.resolver import Operation, RequestResolver
from app.config.settings import settings
from app.errors import ApiError
from app.schemas.market_data import ErrorResponse, MarketData
from app.services.http_aggregate_service import HttpAggregateService
from app.utils.exchange_mapper import ExchangeIdentityMap

logger = logging.getLogger(__name__)
router = APIRouter()

exchange_map = ExchangeIdentityMap.from_settings(settings)
aggregate_service = HttpAggregateService()
resolver = RequestResolver(aggregate_service, exchange_map)

MODES = ("test", "live")

INDEX_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>Market Price Gateway</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; color: #1f2937; }
    code { background: #f3f4f6; padding: 0 0.25rem; }
    form { display: inline; }
  </style>
</head>
<body>
  <h1>Market Price Gateway</h1>
  <ul>
    <li><code>GET /price/latest/{symbol}</code>, <code>GET /price/latest/{exchange}/{symbol}</code></li>
    <li><code>GET /price/highest/[{exchange}/]{symbol}[?period=5m]</code></li>
    <li><code>GET /price/lowest/[{exchange}/]{symbol}[?period=5m]</code></li>
    <li><code>GET /price/average/{symbol}</code>, <code>GET /price/average/{exchange}/{symbol}[?period=5m]</code></li>
    <li><code>GET /health</code></li>
  </ul>
  <p>Exchanges: %(exchanges)s</p>
  <form method="post" action="/mode/test"><button type="submit">Test mode</button></form>
  <form method="post" action="/mode/live"><button type="submit">Live mode</button></form>
</body>
</html>
"""


def error_response(error: ApiError) -> JSONResponse:
    payload = ErrorResponse(error=error.message)
    return JSONResponse(payload.model_dump(), status_code=error.status_code, headers={"x-error-code": error.kind.value})


def _request_path(request: Request) -> str:
    path = request.scope["path"]
    root_path = request.scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path):]
    return path


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        response = None
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.info(
                "request_complete",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code if response else 500,
                    "latency_ms": latency_ms,
                    "error_code": response.headers.get("x-error-code") if response else None,
                },
            )

    app.include_router(router)
    return app


@router.get("/", response_class=HTMLResponse)
def index():
    logger.info("Rendering index page")
    return INDEX_HTML % {"exchanges": ", ".join(sorted(exchange_map))}


@router.get("/health", response_class=PlainTextResponse)
def health():
    logger.info("Health check requested")
    try:
        aggregate_service.health_check()
    except Exception as exc:
        logger.error(f"Health check failed: {exc}", exc_info=True)
        return PlainTextResponse("Service Unavailable", status_code=503)
    logger.info("Health check passed")
    return PlainTextResponse("OK")


def _switch_mode(mode: str) -> RedirectResponse:
    logger.info(f"Switching to {mode.upper()} mode")
    aggregate_service.set_mode(mode)
    return RedirectResponse("/", status_code=303)


@router.api_route("/mode/test", methods=["GET", "POST"])
def set_test_mode():
    return _switch_mode("test")


@router.api_route("/mode/live", methods=["GET", "POST"])
def set_live_mode():
    return _switch_mode("live")


@router.get("/price/{statistic}", response_model=MarketData, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
@router.get("/price/{statistic}/{tail:path}", response_model=MarketData, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
def price_statistic(statistic: str, request: Request):
    try:
        operation = Operation(statistic.lower())
    except ValueError:
        return JSONResponse(ErrorResponse(error=f"unknown statistic {statistic!r}").model_dump(), status_code=404)

    try:
        return resolver.handle(operation, _request_path(request), request.query_params)
    except ApiError as exc:
        return error_response(exc)
