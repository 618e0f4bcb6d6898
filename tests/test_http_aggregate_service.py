import io
from datetime import timedelta
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs, urlparse

import pytest

from app.errors import AppError
from app.services import http_aggregate_service
from app.services.http_aggregate_service import HttpAggregateService


class _FakeResponse:
    def __init__(self, body):
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def captured(monkeypatch):
    requests = []

    def fake_urlopen(request, timeout):
        requests.append((request, timeout))
        return _FakeResponse(b'{"symbol": "BTC", "exchange": "exchange1:40101", "price": 42000.5, "timestamp": 1704067200000}')

    monkeypatch.setattr(http_aggregate_service, "urlopen", fake_urlopen)
    return requests


def test_period_call_encodes_query(captured):
    service = HttpAggregateService("http://data:8081/", timeout_seconds=3)
    data = service.get_highest_by_period("exchange1:40101", "BTC", timedelta(minutes=5))

    request, timeout = captured[0]
    url = urlparse(request.full_url)
    assert url.path == "/aggregates/highest"
    assert parse_qs(url.query) == {"symbol": ["BTC"], "exchange": ["exchange1:40101"], "period": ["300000000us"]}
    assert timeout == 3
    assert data.price == 42000.5
    assert data.exchange == "exchange1:40101"


def test_empty_exchange_is_omitted(captured):
    HttpAggregateService("http://data:8081").get_lowest_by_period("", "BTC", timedelta(seconds=1))
    query = parse_qs(urlparse(captured[0][0].full_url).query)
    assert "exchange" not in query


def test_aggregate_call_has_only_symbol(captured):
    HttpAggregateService("http://data:8081").get_average_aggregate("ETH")
    url = urlparse(captured[0][0].full_url)
    assert url.path == "/aggregates/average"
    assert parse_qs(url.query) == {"symbol": ["ETH"]}


def test_http_error_becomes_app_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise HTTPError(request.full_url, 404, "Not Found", {}, io.BytesIO(b'{"error": "no data for BTC"}'))

    monkeypatch.setattr(http_aggregate_service, "urlopen", fake_urlopen)
    with pytest.raises(AppError) as info:
        HttpAggregateService("http://data:8081").get_latest_aggregate("BTC")
    assert info.value.code == 404
    assert info.value.message == "no data for BTC"


def test_http_error_without_json_uses_reason(monkeypatch):
    def fake_urlopen(request, timeout):
        raise HTTPError(request.full_url, 502, "Bad Gateway", {}, io.BytesIO(b"<html>"))

    monkeypatch.setattr(http_aggregate_service, "urlopen", fake_urlopen)
    with pytest.raises(AppError) as info:
        HttpAggregateService("http://data:8081").health_check()
    assert info.value.code == 502
    assert info.value.message == "Bad Gateway"


def test_transport_failure_propagates(monkeypatch):
    def fake_urlopen(request, timeout):
        raise URLError("connection refused")

    monkeypatch.setattr(http_aggregate_service, "urlopen", fake_urlopen)
    with pytest.raises(URLError):
        HttpAggregateService("http://data:8081").get_latest_by_exchange("exchange1:40101", "BTC")


def test_set_mode_posts_and_never_raises(monkeypatch):
    seen = []

    def fake_urlopen(request, timeout):
        seen.append((request.get_method(), request.full_url))
        raise URLError("connection refused")

    monkeypatch.setattr(http_aggregate_service, "urlopen", fake_urlopen)
    HttpAggregateService("http://data:8081").set_mode("live")
    assert seen == [("POST", "http://data:8081/mode/live")]
