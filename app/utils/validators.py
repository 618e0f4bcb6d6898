from __future__ import annotations

import re
from datetime import timedelta

from app.errors import ApiError, ErrorKind
from app.utils.duration import parse_duration
from app.utils.exchange_mapper import ExchangeIdentityMap

MAX_SYMBOL_LENGTH = 10
_ALNUM_PATTERN = re.compile(r"[A-Za-z0-9]+")


def validate_symbol(symbol: str) -> str:
    if not symbol:
        raise ApiError(ErrorKind.INVALID_SYMBOL, "symbol is required")
    if len(symbol) > MAX_SYMBOL_LENGTH:
        raise ApiError(ErrorKind.INVALID_SYMBOL, "symbol is too long")
    if not _ALNUM_PATTERN.fullmatch(symbol):
        raise ApiError(ErrorKind.INVALID_SYMBOL, "symbol must be alphanumeric")
    return symbol.upper()


def validate_exchange(exchange: str, exchange_map: ExchangeIdentityMap) -> str | None:
    """Resolve a short exchange id to its canonical address; empty means all exchanges."""
    if not exchange:
        return None
    canonical = exchange_map.to_canonical(exchange)
    if canonical is None:
        raise ApiError(ErrorKind.UNKNOWN_EXCHANGE, "unknown exchange")
    return canonical


def parse_period(raw: str | None) -> timedelta | None:
    if not raw:
        return None
    try:
        period = parse_duration(raw)
    except ValueError as exc:
        raise ApiError(ErrorKind.INVALID_PERIOD_FORMAT, "invalid period format") from exc
    if period <= timedelta(0):
        raise ApiError(ErrorKind.INVALID_PERIOD, "period must be positive")
    return period
