from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from app.config.settings import settings
from app.errors import AppError
from app.schemas.market_data import MarketData
from app.services.base import AggregateService
from app.utils.duration import format_duration

logger = logging.getLogger(__name__)

USER_AGENT = "market-price-gateway/1.0"


class HttpAggregateService(AggregateService):
    """Talks to the aggregate data service over HTTP/JSON."""

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None):
        self.base_url = (base_url or settings.data_service_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.request_timeout_seconds

    def _request(self, method: str, path: str, params: dict[str, Any] | None = None) -> bytes:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        request = Request(url, method=method, headers={"User-Agent": USER_AGENT, "Accept": "application/json"})
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                return response.read()
        except HTTPError as exc:
            raise _app_error_from_http(exc) from exc

    def _get_aggregate(self, statistic: str, symbol: str, exchange: str = "", period: timedelta | None = None) -> MarketData:
        params: dict[str, Any] = {"symbol": symbol}
        if exchange:
            params["exchange"] = exchange
        if period is not None:
            params["period"] = format_duration(period)
        body = self._request("GET", f"/aggregates/{statistic}", params)
        return MarketData.model_validate_json(body)

    def get_latest_aggregate(self, symbol: str) -> MarketData:
        return self._get_aggregate("latest", symbol)

    def get_latest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        return self._get_aggregate("latest", symbol, exchange)

    def get_highest_aggregate(self, symbol: str) -> MarketData:
        return self._get_aggregate("highest", symbol)

    def get_highest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        return self._get_aggregate("highest", symbol, exchange)

    def get_highest_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        return self._get_aggregate("highest", symbol, exchange, period)

    def get_lowest_aggregate(self, symbol: str) -> MarketData:
        return self._get_aggregate("lowest", symbol)

    def get_lowest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        return self._get_aggregate("lowest", symbol, exchange)

    def get_lowest_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        return self._get_aggregate("lowest", symbol, exchange, period)

    def get_average_aggregate(self, symbol: str) -> MarketData:
        return self._get_aggregate("average", symbol)

    def get_average_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        return self._get_aggregate("average", symbol, exchange)

    def get_average_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        return self._get_aggregate("average", symbol, exchange, period)

    def health_check(self) -> None:
        self._request("GET", "/health")

    def set_mode(self, mode: str) -> None:
        try:
            self._request("POST", f"/mode/{quote(mode, safe='')}")
        except (AppError, URLError, TimeoutError, OSError) as exc:
            logger.warning(f"Mode switch to {mode} was not acknowledged: {exc}")


def _app_error_from_http(exc: HTTPError) -> AppError:
    message = exc.reason if isinstance(exc.reason, str) and exc.reason else f"HTTP {exc.code}"
    try:
        payload = json.loads(exc.read().decode("utf-8")) if exc.fp is not None else None
    except (ValueError, OSError):
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        message = payload["error"]
    return AppError(exc.code, message)
