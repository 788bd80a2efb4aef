"""Tests for CoinGeckoProvider with mocked HTTP."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tokenoracle.domain.enums import Network
from tokenoracle.exceptions import ExternalServiceError
from tokenoracle.infra.price.coingecko import CoinGeckoProvider, history_date, is_contract_address

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def _response(status_code: int = 200, data=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


@pytest.fixture()
def mock_http():
    http = MagicMock()
    http.get = AsyncMock()
    return http


class TestHelpers:
    def test_history_date_is_utc_day(self):
        assert history_date(1700000000) == "14-11-2023"
        assert history_date(0) == "01-01-1970"

    def test_is_contract_address(self):
        assert is_contract_address(USDC)
        assert not is_contract_address("usd-coin")
        assert not is_contract_address("0x1234")


class TestGetPriceAtDate:
    async def test_coin_id_token_queries_history(self, mock_http):
        mock_http.get.return_value = _response(data={"market_data": {"current_price": {"usd": 0.9998}}})
        provider = CoinGeckoProvider(mock_http)

        price = await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000)

        assert price == 0.9998
        url = mock_http.get.call_args.args[0]
        params = mock_http.get.call_args.kwargs["params"]
        assert url.endswith("/api/v3/coins/usd-coin/history")
        assert params["date"] == "14-11-2023"

    async def test_contract_resolved_once_then_memoised(self, mock_http):
        mock_http.get.side_effect = [
            _response(data={"id": "usd-coin"}),
            _response(data={"market_data": {"current_price": {"usd": 1.0}}}),
            _response(data={"market_data": {"current_price": {"usd": 1.01}}}),
        ]
        provider = CoinGeckoProvider(mock_http)

        assert await provider.get_price_at_date(USDC, Network.ETHEREUM, 1700000000) == 1.0
        assert await provider.get_price_at_date(USDC, Network.ETHEREUM, 1700086400) == 1.01

        urls = [c.args[0] for c in mock_http.get.call_args_list]
        assert urls[0].endswith(f"/api/v3/coins/ethereum/contract/{USDC.lower()}")
        assert sum("/contract/" in u for u in urls) == 1

    async def test_polygon_uses_polygon_pos_platform(self, mock_http):
        mock_http.get.side_effect = [
            _response(data={"id": "usd-coin"}),
            _response(data={"market_data": {"current_price": {"usd": 1.0}}}),
        ]
        provider = CoinGeckoProvider(mock_http)
        await provider.get_price_at_date(USDC, Network.POLYGON, 1700000000)
        assert "/coins/polygon-pos/contract/" in mock_http.get.call_args_list[0].args[0]

    async def test_missing_market_data_returns_none(self, mock_http):
        mock_http.get.return_value = _response(data={"id": "usd-coin"})
        provider = CoinGeckoProvider(mock_http)
        assert await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000) is None

    async def test_rate_limit_raises(self, mock_http):
        mock_http.get.return_value = _response(status_code=429)
        provider = CoinGeckoProvider(mock_http)
        with pytest.raises(ExternalServiceError, match="429"):
            await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000)

    async def test_server_error_raises(self, mock_http):
        mock_http.get.return_value = _response(status_code=500)
        provider = CoinGeckoProvider(mock_http)
        with pytest.raises(ExternalServiceError):
            await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000)

    async def test_transport_error_raises(self, mock_http):
        mock_http.get.side_effect = httpx.ConnectError("refused")
        provider = CoinGeckoProvider(mock_http)
        with pytest.raises(ExternalServiceError, match="request failed"):
            await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000)

    async def test_api_key_passed(self, mock_http):
        mock_http.get.return_value = _response(data={"market_data": {"current_price": {"usd": 1.0}}})
        provider = CoinGeckoProvider(mock_http, api_key="demo-key")
        await provider.get_price_at_date("usd-coin", Network.ETHEREUM, 1700000000)
        assert mock_http.get.call_args.kwargs["params"]["x_cg_demo_api_key"] == "demo-key"


class TestGetCurrentPrice:
    async def test_contract_uses_token_price_endpoint(self, mock_http):
        mock_http.get.return_value = _response(data={USDC.lower(): {"usd": 0.999}})
        provider = CoinGeckoProvider(mock_http)

        assert await provider.get_current_price(USDC, Network.ETHEREUM) == 0.999
        assert mock_http.get.call_args.args[0].endswith("/api/v3/simple/token_price/ethereum")

    async def test_coin_id_uses_simple_price(self, mock_http):
        mock_http.get.return_value = _response(data={"usd-coin": {"usd": 1.0}})
        provider = CoinGeckoProvider(mock_http)
        assert await provider.get_current_price("usd-coin", Network.POLYGON) == 1.0

    async def test_unknown_token_returns_none(self, mock_http):
        mock_http.get.return_value = _response(data={})
        provider = CoinGeckoProvider(mock_http)
        assert await provider.get_current_price(USDC, Network.ETHEREUM) is None
