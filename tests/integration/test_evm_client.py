"""Integration tests for the EVM client: JSON-RPC framing, errors, failover."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_abi import encode

from walletscan.chains.evm import MIN_ABI, EvmClient
from walletscan.config import ChainConfig
from walletscan.query import QueryExecutor

TOKEN = "0xb31f66aa3c1e785363f0875a1b74e27b85fd66c7"


@pytest.fixture()
def client(sample_chain_config: ChainConfig) -> EvmClient:
    return EvmClient("avax", sample_chain_config)


def _response(data: dict | None = None, error: Exception | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    if error:
        mock_response.json = AsyncMock(side_effect=error)
    else:
        mock_response.json = AsyncMock(return_value=data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)
    return mock_response


def _mock_session(response_data: dict | None = None, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=_response(response_data))
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": "0x1"})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                result = await client.rpc_call("https://rpc2.example.com", "eth_chainId", [])

        assert result == "0x1"
        call = mock_session.post.call_args
        assert call.args[0] == "https://rpc2.example.com"
        assert call.kwargs["json"]["method"] == "eth_chainId"
        assert call.kwargs["json"]["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": "0x1"})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                await client.rpc_call("https://rpc1.example.com", "eth_chainId", [])
                await client.rpc_call("https://rpc1.example.com", "eth_chainId", [])

        ids = [c.kwargs["json"]["id"] for c in mock_session.post.call_args_list]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self, client: EvmClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32000, "message": "execution reverted"}}
        )

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="RPC Error"):
                    await client.rpc_call("https://rpc1.example.com", "eth_call", [])

    @pytest.mark.asyncio
    async def test_missing_result_raises(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "id": 1})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="has no result"):
                    await client.rpc_call("https://rpc1.example.com", "eth_call", [])


class TestEthCall:
    @pytest.mark.asyncio
    async def test_encodes_request_and_decodes_hex(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": "0x" + "00" * 31 + "06"})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                raw = await client.eth_call("https://rpc1.example.com", TOKEN, b"\x31\x3c\xe5\x67")

        assert raw == b"\x00" * 31 + b"\x06"
        params = mock_session.post.call_args.kwargs["json"]["params"]
        assert params[0] == {
            "to": "0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7",
            "data": "0x313ce567",
        }
        assert params[1] == "latest"

    @pytest.mark.asyncio
    async def test_empty_result_raises(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": "0x"})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="Empty eth_call result"):
                    await client.eth_call("https://rpc1.example.com", TOKEN, b"\x00")

    @pytest.mark.asyncio
    async def test_get_balance(self, client: EvmClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": hex(1500000000000000000)})

        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                balance = await client.get_balance("https://rpc1.example.com", TOKEN)

        assert balance == 1500000000000000000


class TestExecutorOverHttp:
    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, sample_app_config, client: EvmClient) -> None:
        """When the first endpoint fails, the executor tries the next one."""
        call_count = 0
        success = _response(
            {"jsonrpc": "2.0", "result": "0x" + encode(["uint8"], [6]).hex()}
        )

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("first endpoint down")
            return success

        mock_session = AsyncMock()
        mock_session.post = MagicMock(side_effect=side_effect)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        executor = QueryExecutor(sample_app_config, clients={"avax": client})
        with patch("walletscan.chains.evm.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("walletscan.chains.evm.client.aiohttp.TCPConnector"):
                decimals = await executor.query("avax", TOKEN, MIN_ABI, "decimals", [])

        assert decimals == 6
        endpoints = [c.args[0] for c in mock_session.post.call_args_list]
        assert endpoints == ["https://rpc1.example.com", "https://rpc2.example.com"]
