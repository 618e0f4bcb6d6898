import pytest

from app.api.resolver import RequestResolver
from app.schemas.market_data import MarketData
from app.services.base import AggregateService
from app.utils.exchange_mapper import ExchangeIdentityMap

EXCHANGES = {
    "exchange1": "exchange1:40101",
    "exchange2": "exchange2:40102",
    "exchange3": "exchange3:40103",
}


class FakeAggregateService(AggregateService):
    def __init__(self, exchange="exchange2:40102", error=None):
        self.exchange = exchange
        self.error = error
        self.calls = []
        self.modes = []
        self.healthy = True

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        symbol = args[1] if len(args) > 1 else args[0]
        return MarketData(symbol=symbol, exchange=self.exchange, price=101.5, timestamp=1704067200000)

    def get_latest_aggregate(self, symbol):
        return self._record("get_latest_aggregate", symbol)

    def get_latest_by_exchange(self, exchange, symbol):
        return self._record("get_latest_by_exchange", exchange, symbol)

    def get_highest_aggregate(self, symbol):
        return self._record("get_highest_aggregate", symbol)

    def get_highest_by_exchange(self, exchange, symbol):
        return self._record("get_highest_by_exchange", exchange, symbol)

    def get_highest_by_period(self, exchange, symbol, period):
        return self._record("get_highest_by_period", exchange, symbol, period)

    def get_lowest_aggregate(self, symbol):
        return self._record("get_lowest_aggregate", symbol)

    def get_lowest_by_exchange(self, exchange, symbol):
        return self._record("get_lowest_by_exchange", exchange, symbol)

    def get_lowest_by_period(self, exchange, symbol, period):
        return self._record("get_lowest_by_period", exchange, symbol, period)

    def get_average_aggregate(self, symbol):
        return self._record("get_average_aggregate", symbol)

    def get_average_by_exchange(self, exchange, symbol):
        return self._record("get_average_by_exchange", exchange, symbol)

    def get_average_by_period(self, exchange, symbol, period):
        return self._record("get_average_by_period", exchange, symbol, period)

    def health_check(self):
        if not self.healthy:
            raise ConnectionError("data service down")

    def set_mode(self, mode):
        self.modes.append(mode)


@pytest.fixture
def exchange_map():
    return ExchangeIdentityMap.from_mapping(EXCHANGES)


@pytest.fixture
def service():
    return FakeAggregateService()


@pytest.fixture
def resolver(service, exchange_map):
    return RequestResolver(service, exchange_map)


@pytest.fixture
def make_resolver(exchange_map):
    def _make(**kwargs):
        fake = FakeAggregateService(**kwargs)
        return fake, RequestResolver(fake, exchange_map)

    return _make
