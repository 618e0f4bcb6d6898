"""
Request resolution for the price statistics endpoints.
Turns a request path and query into a single aggregate call on the data
service and maps the outcome back into the gateway's vocabulary.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any

from app.errors import ApiError, ErrorKind, classify_backend_error
from app.schemas.market_data import MarketData
from app.services.base import AggregateService
from app.utils.exchange_mapper import ExchangeIdentityMap
from app.utils.validators import parse_period, validate_exchange, validate_symbol

logger = logging.getLogger(__name__)

PERIOD_PARAM = "period"


class Operation(str, Enum):
    LATEST = "latest"
    HIGHEST = "highest"
    LOWEST = "lowest"
    AVERAGE = "average"


@dataclass(frozen=True)
class EndpointCapabilities:
    accepts_period: bool
    period_without_exchange: bool


DEFAULT_CAPABILITIES: Mapping[Operation, EndpointCapabilities] = MappingProxyType(
    {
        Operation.LATEST: EndpointCapabilities(accepts_period=False, period_without_exchange=False),
        Operation.HIGHEST: EndpointCapabilities(accepts_period=True, period_without_exchange=True),
        Operation.LOWEST: EndpointCapabilities(accepts_period=True, period_without_exchange=True),
        # averaging across every exchange over a window is not offered
        Operation.AVERAGE: EndpointCapabilities(accepts_period=True, period_without_exchange=False),
    }
)


@dataclass(frozen=True)
class QueryIntent:
    operation: Operation
    symbol: str
    exchange: str | None = None
    period: timedelta | None = None


class AggregateCall(str, Enum):
    """Read operations of the data service; values are AggregateService method names."""

    LATEST_AGGREGATE = "get_latest_aggregate"
    LATEST_BY_EXCHANGE = "get_latest_by_exchange"
    HIGHEST_AGGREGATE = "get_highest_aggregate"
    HIGHEST_BY_EXCHANGE = "get_highest_by_exchange"
    HIGHEST_BY_PERIOD = "get_highest_by_period"
    LOWEST_AGGREGATE = "get_lowest_aggregate"
    LOWEST_BY_EXCHANGE = "get_lowest_by_exchange"
    LOWEST_BY_PERIOD = "get_lowest_by_period"
    AVERAGE_AGGREGATE = "get_average_aggregate"
    AVERAGE_BY_EXCHANGE = "get_average_by_exchange"
    AVERAGE_BY_PERIOD = "get_average_by_period"


_AGGREGATE_CALLS = {
    Operation.LATEST: AggregateCall.LATEST_AGGREGATE,
    Operation.HIGHEST: AggregateCall.HIGHEST_AGGREGATE,
    Operation.LOWEST: AggregateCall.LOWEST_AGGREGATE,
    Operation.AVERAGE: AggregateCall.AVERAGE_AGGREGATE,
}

_BY_EXCHANGE_CALLS = {
    Operation.LATEST: AggregateCall.LATEST_BY_EXCHANGE,
    Operation.HIGHEST: AggregateCall.HIGHEST_BY_EXCHANGE,
    Operation.LOWEST: AggregateCall.LOWEST_BY_EXCHANGE,
    Operation.AVERAGE: AggregateCall.AVERAGE_BY_EXCHANGE,
}

_BY_PERIOD_CALLS = {
    Operation.HIGHEST: AggregateCall.HIGHEST_BY_PERIOD,
    Operation.LOWEST: AggregateCall.LOWEST_BY_PERIOD,
    Operation.AVERAGE: AggregateCall.AVERAGE_BY_PERIOD,
}


def split_path(path: str) -> list[str]:
    return path.strip("/").split("/")


def _first_value(query: Mapping[str, str], key: str) -> str:
    # multi-valued mappings such as QueryParams keep the last value in get()
    getlist = getattr(query, "getlist", None)
    if getlist is not None:
        values = getlist(key)
        return values[0] if values else ""
    return query.get(key) or ""


class RequestResolver:
    """Maps price requests onto exactly one aggregate call.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        service: AggregateService,
        exchange_map: ExchangeIdentityMap,
        capabilities: Mapping[Operation, EndpointCapabilities] = DEFAULT_CAPABILITIES,
    ):
        self.service = service
        self.exchange_map = exchange_map
        self.capabilities = capabilities

    def handle(self, operation: Operation, path: str, query: Mapping[str, str]) -> MarketData:
        intent = self.resolve(operation, path, query)
        return self.fetch(intent)

    def resolve(self, operation: Operation, path: str, query: Mapping[str, str]) -> QueryIntent:
        """Validate the request and build its QueryIntent; raises ApiError on rejection."""
        try:
            return self._resolve(operation, path, query)
        except ApiError as exc:
            logger.warning(
                f"{operation.value} price request rejected: {exc.message}",
                extra={"operation": operation.value, "path": path, "error_code": exc.kind.value},
            )
            raise

    def _resolve(self, operation: Operation, path: str, query: Mapping[str, str]) -> QueryIntent:
        caps = self.capabilities[operation]
        raw_period = _first_value(query, PERIOD_PARAM)

        if raw_period and not caps.accepts_period:
            raise ApiError(
                ErrorKind.PERIOD_NOT_APPLICABLE,
                f"period parameter is not applicable for {operation.value} price",
            )

        parts = split_path(path)
        if len(parts) == 3:
            exchange = None
            raw_symbol = parts[2]
        elif len(parts) == 4:
            exchange = validate_exchange(parts[2], self.exchange_map)
            raw_symbol = parts[3]
        else:
            raise ApiError(ErrorKind.INVALID_PATH, "Invalid path")

        symbol = validate_symbol(raw_symbol)
        period = parse_period(raw_period)

        intent = QueryIntent(operation=operation, symbol=symbol, exchange=exchange, period=period)
        self._check_period_scope(intent)
        return intent

    def _check_period_scope(self, intent: QueryIntent):
        if intent.period is None or intent.exchange:
            return
        if not self.capabilities[intent.operation].period_without_exchange:
            raise ApiError(
                ErrorKind.PERIOD_REQUIRES_EXCHANGE,
                f"cannot get {intent.operation.value} by period without exchange",
            )

    def select_call(self, intent: QueryIntent) -> tuple[AggregateCall, tuple[Any, ...]]:
        if intent.period is not None:
            if intent.operation not in _BY_PERIOD_CALLS:
                raise ApiError(
                    ErrorKind.PERIOD_NOT_APPLICABLE,
                    f"period parameter is not applicable for {intent.operation.value} price",
                )
            self._check_period_scope(intent)
            return _BY_PERIOD_CALLS[intent.operation], (intent.exchange or "", intent.symbol, intent.period)
        if intent.exchange:
            return _BY_EXCHANGE_CALLS[intent.operation], (intent.exchange, intent.symbol)
        return _AGGREGATE_CALLS[intent.operation], (intent.symbol,)

    def fetch(self, intent: QueryIntent) -> MarketData:
        call, args = self.select_call(intent)
        try:
            data = getattr(self.service, call.value)(*args)
        except Exception as exc:
            context = {"operation": intent.operation.value, "symbol": intent.symbol, "exchange": intent.exchange or ""}
            error = classify_backend_error(exc, context)
            if error.kind is ErrorKind.DOMAIN_ERROR:
                logger.warning(
                    f"{intent.operation.value} price error: {error.message}",
                    extra={**context, "error_code": error.status_code},
                )
            raise error from exc
        return self.rewrite_exchange(data)

    def rewrite_exchange(self, data: MarketData) -> MarketData:
        exchange = self.exchange_map.rewrite(data.exchange)
        if exchange == data.exchange:
            return data
        return data.model_copy(update={"exchange": exchange})
