"""Tests for the RentCast valuation client (httpx MockTransport)."""
import httpx
import pytest

from loanlens.errors import ValuationError
from loanlens.services.valuation_client import (
    PropertyValuationClient,
    ValuationCache,
    parse_sale_history,
    parse_valuation,
)

_ADDRESS = "12 Elm St, Springfield, IL"

_VALUE_PAYLOAD = {"price": 420_000, "priceRangeLow": 400_000, "priceRangeHigh": 440_000, "confidence": 0.9}

_PROPERTY_PAYLOAD = [{
    "history": {
        "2019-03-01": {"event": "Sale", "date": "2019-03-01T00:00:00.000Z", "price": 350_000},
        "2015-06-15": {"event": "Sale", "date": "2015-06-15T00:00:00.000Z", "price": 280_000},
        "2010-01-01": {"event": "Sale", "price": 0},
    }
}]


def _make_client(handler, api_key="test-key", cache=None):
    return PropertyValuationClient(
        api_key=api_key,
        base_url="https://api.rentcast.io/v1",
        cache=cache,
        transport=httpx.MockTransport(handler),
    )


def _routes(calls, value_status=200, history_status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        assert request.headers["X-Api-Key"] == "test-key"
        if request.url.path.endswith("/avm/value"):
            return httpx.Response(value_status, json=_VALUE_PAYLOAD)
        if request.url.path.endswith("/properties"):
            return httpx.Response(history_status, json=_PROPERTY_PAYLOAD)
        return httpx.Response(404)
    return handler


# --- Payload parsing ---


def test_parse_valuation_reads_range_fields():
    result = parse_valuation(_VALUE_PAYLOAD)
    assert result.estimated_value == 420_000
    assert result.low_estimate == 400_000
    assert result.high_estimate == 440_000
    assert result.confidence == 0.9


def test_parse_valuation_nested_range_and_missing_price():
    result = parse_valuation({"estimatedValue": 310_000, "range": {"low": 300_000, "high": 320_000}})
    assert result.estimated_value == 310_000
    assert result.low_estimate == 300_000
    assert parse_valuation({}).estimated_value == 0


def test_parse_sale_history_sorted_and_filtered():
    points = parse_sale_history(_PROPERTY_PAYLOAD)
    assert [p.month for p in points] == ["Jun 2015", "Mar 2019"]
    assert [p.value for p in points] == [280_000, 350_000]


def test_parse_sale_history_keeps_last_twelve():
    history = {
        f"{year}-05-01": {"date": f"{year}-05-01", "price": 100_000 + year}
        for year in range(2005, 2020)
    }
    points = parse_sale_history([{"history": history}])
    assert len(points) == 12
    assert points[0].month == "May 2008"
    assert points[-1].month == "May 2019"


def test_parse_sale_history_empty_payloads():
    assert parse_sale_history([]) == []
    assert parse_sale_history({}) == []
    assert parse_sale_history([{"history": {}}]) == []


# --- Client behaviour ---


def test_get_value_and_history():
    calls = []
    with _make_client(_routes(calls)) as client:
        value = client.get_value(_ADDRESS)
        history = client.get_history(_ADDRESS)
    assert value.estimated_value == 420_000
    assert len(history) == 2
    assert calls[0].url.params["address"] == _ADDRESS


def test_repeated_address_served_from_cache():
    calls = []
    client = _make_client(_routes(calls))
    client.get_value(_ADDRESS)
    client.get_value(_ADDRESS)
    client.get_history(_ADDRESS)
    client.get_history(_ADDRESS)
    assert len(calls) == 2
    assert len(client.cache) == 1


def test_shared_cache_object_is_used():
    cache = ValuationCache()
    calls = []
    _make_client(_routes(calls), cache=cache).get_value(_ADDRESS)
    assert _ADDRESS in cache.values


def test_missing_api_key_raises():
    client = _make_client(_routes([]), api_key="")
    with pytest.raises(ValuationError, match="RENTCAST_API_KEY"):
        client.get_value(_ADDRESS)


def test_value_http_error_raises():
    client = _make_client(_routes([], value_status=500))
    with pytest.raises(ValuationError, match="500"):
        client.get_value(_ADDRESS)
    assert _ADDRESS not in client.cache.values


def test_history_http_error_returns_empty():
    client = _make_client(_routes([], history_status=404))
    assert client.get_history(_ADDRESS) == []


def test_transport_error_raises_valuation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ValuationError):
        _make_client(handler).get_value(_ADDRESS)


def test_non_object_value_payload_raises_valuation_error():
    def handler(request):
        return httpx.Response(200, json=[])

    client = _make_client(handler)
    with pytest.raises(ValuationError, match="payload"):
        client.get_value(_ADDRESS)
    assert len(client.cache) == 0


def test_comparables_read_from_comps():
    comps = [{"formattedAddress": "14 Elm St", "price": 415_000}, "bad"]
    result = parse_valuation({**_VALUE_PAYLOAD, "comps": comps})
    assert result.comparables == [{"formattedAddress": "14 Elm St", "price": 415_000}]
    assert parse_valuation(_VALUE_PAYLOAD).comparables == []


def test_cache_counts_each_address_once():
    cache = ValuationCache()
    client = _make_client(_routes([]), cache=cache)
    client.get_value(_ADDRESS)
    client.get_history(_ADDRESS)
    client.get_value("99 Oak Ave")
    assert len(cache) == 2
