from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from app.schemas.market_data import MarketData


class AggregateService(ABC):
    """Backing data service that computes price aggregates.

    Read operations return a MarketData record whose exchange field is a
    canonical address, or raise AppError for classified failures.
    """

    @abstractmethod
    def get_latest_aggregate(self, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_latest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_highest_aggregate(self, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_highest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_highest_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_lowest_aggregate(self, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_lowest_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_lowest_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_average_aggregate(self, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_average_by_exchange(self, exchange: str, symbol: str) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def get_average_by_period(self, exchange: str, symbol: str, period: timedelta) -> MarketData:
        raise NotImplementedError

    @abstractmethod
    def health_check(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_mode(self, mode: str) -> None:
        raise NotImplementedError
