"""Tests for the settlement poller."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from qrisgate.settlement import (
    SettlementPoller,
    SettlementStatus,
    find_matching_amount,
    normalize_amount,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Rp 10.000", "10000"),
        (10000, "10000"),
        ("10,000.00", "1000000"),
        ("", ""),
        (None, ""),
        (10000.0, "10000"),
        (10000.5, "100005"),
    ],
)
def test_normalize_amount(value, expected):
    assert normalize_amount(value) == expected


def test_find_matching_amount_skips_unusable_items():
    transactions = ["oops", {"note": "no amount"}, {"amount": None}, {"amount": "Rp 25.117", "id": 9}]
    assert find_matching_amount(transactions, 25117) == {"amount": "Rp 25.117", "id": 9}


def test_empty_expected_amount_never_matches():
    assert find_matching_amount([{"amount": "n/a"}], "free") is None


class TestCheckSettlement:
    @pytest.mark.asyncio
    async def test_success_on_formatted_amount(self, feed_url, json_feed):
        poller = SettlementPoller(feed_url, transport=json_feed({"data": [{"amount": "Rp 10.000"}]}))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_success_on_whole_number_float_amount(self, feed_url):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b'{"data":[{"amount":10000.0}]}', headers={"Content-Type": "application/json"})
        )
        poller = SettlementPoller(feed_url, transport=transport)

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_match_is_order_independent(self, feed_url, json_feed):
        body = {"data": [{"amount": 5000}, {"amount": "7.500"}, {"amount": "10.042"}]}
        poller = SettlementPoller(feed_url, transport=json_feed(body))

        result = await poller.check_settlement("M123", "token", "10042")

        assert result.status is SettlementStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_pending_when_no_amount_matches(self, feed_url, json_feed):
        poller = SettlementPoller(feed_url, transport=json_feed({"data": [{"amount": "Rp 10.001"}]}))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"data": []}, {}, {"data": None}, {"data": "nope"}, [], "text", {"data": [{"amount": None}]}],
    )
    async def test_pending_on_empty_or_malformed_feed(self, feed_url, json_feed, body):
        poller = SettlementPoller(feed_url, transport=json_feed(body))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    async def test_pending_on_error_status(self, feed_url, json_feed):
        poller = SettlementPoller(feed_url, transport=json_feed({"data": [{"amount": 10000}]}, status_code=503))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    async def test_pending_on_non_json_body(self, feed_url):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        poller = SettlementPoller(feed_url, transport=transport)

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_pending_on_transport_errors(self, feed_url, error):
        def handler(request: httpx.Request) -> httpx.Response:
            raise error("boom", request=request)

        poller = SettlementPoller(feed_url, transport=httpx.MockTransport(handler))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    async def test_pending_when_feed_exceeds_hard_timeout(self, feed_url):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={"data": [{"amount": 10000}]})

        poller = SettlementPoller(feed_url, timeout=0.05, transport=httpx.MockTransport(handler))

        result = await poller.check_settlement("M123", "token", 10000)

        assert result.status is SettlementStatus.PENDING

    @pytest.mark.asyncio
    async def test_single_request_keyed_by_merchant_and_token(self, feed_url):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        poller = SettlementPoller(feed_url + "/", transport=httpx.MockTransport(handler))
        await poller.check_settlement("OK12345", "a/b token", 10000)

        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert seen[0].url.raw_path.decode() == "/api/mutasi/qris/OK12345/a%2Fb%20token"
