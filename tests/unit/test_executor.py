"""Unit tests for the failover query executor."""
from __future__ import annotations

import pytest
from eth_abi import encode

from walletscan.chains.evm.abi import MIN_ABI
from walletscan.config import AppConfig
from walletscan.errors import ChainQueryError, ExhaustedRetriesError
from walletscan.query.executor import QueryExecutor, RetryState

TOKEN = "0x1111111111111111111111111111111111111111"
SUPPRESSED = "0x8aaa5e259f74c8114e0a471d9f2adfc66bfe09ed"


class TestRetryState:
    def test_advance_wraps_and_counts_pass(self) -> None:
        state = RetryState()
        state.advance(2)
        assert (state.endpoint_index, state.passes) == (1, 0)
        state.advance(2)
        assert (state.endpoint_index, state.passes) == (0, 1)


class TestQuery:
    @pytest.mark.asyncio
    async def test_success_first_endpoint(self, sample_app_config: AppConfig, make_client) -> None:
        client = make_client(
            sample_app_config.endpoints("avax"), eth_call=encode(["string"], ["WAVAX"])
        )
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        result = await executor.query("avax", TOKEN, MIN_ABI, "symbol", [])

        assert result == "WAVAX"
        assert len(client.calls) == 1
        assert client.calls[0][0] == "https://rpc1.example.com"

    @pytest.mark.asyncio
    async def test_fails_over_to_next_endpoint(self, sample_app_config: AppConfig, make_client) -> None:
        def eth_call(endpoint: str, to: str, data: bytes) -> bytes:
            if endpoint == "https://rpc1.example.com":
                raise ConnectionError("first endpoint down")
            return encode(["uint8"], [6])

        client = make_client(sample_app_config.endpoints("avax"), eth_call=eth_call)
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        result = await executor.query("avax", TOKEN, MIN_ABI, "decimals", [])

        assert result == 6
        assert [c[0] for c in client.calls] == [
            "https://rpc1.example.com",
            "https://rpc2.example.com",
        ]

    @pytest.mark.asyncio
    async def test_exhaustion_attempts_every_endpoint_every_pass(
        self, sample_app_config: AppConfig, make_client
    ) -> None:
        endpoints = sample_app_config.endpoints("avax")
        client = make_client(endpoints, eth_call=ConnectionError("down"))
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        with pytest.raises(ChainQueryError) as exc_info:
            await executor.query("avax", TOKEN, MIN_ABI, "balanceOf", [TOKEN])

        # 3 endpoints x 3 passes, strictly in order
        assert len(client.calls) == 9
        assert [c[0] for c in client.calls] == list(endpoints) * 3
        err = exc_info.value
        assert err.chain == "avax"
        assert err.method == "balanceOf"
        assert err.address == TOKEN
        assert err.args_ == (TOKEN,)
        assert isinstance(err.cause, ConnectionError)
        assert isinstance(err, ExhaustedRetriesError)

    @pytest.mark.asyncio
    async def test_undecodable_result_counts_as_failure(
        self, sample_app_config: AppConfig, make_client
    ) -> None:
        client = make_client(sample_app_config.endpoints("avax"), eth_call=b"\x00")
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        with pytest.raises(ChainQueryError):
            await executor.query("avax", TOKEN, MIN_ABI, "symbol", [])
        assert len(client.calls) == 9

    @pytest.mark.asyncio
    async def test_suppressed_contract_resolves_to_none(
        self, sample_app_config: AppConfig, make_client
    ) -> None:
        client = make_client(
            sample_app_config.endpoints("poly"), eth_call=RuntimeError("execution reverted")
        )
        executor = QueryExecutor(sample_app_config, clients={"poly": client})

        result = await executor.query("poly", SUPPRESSED, MIN_ABI, "symbol", [])

        assert result is None
        # 2 endpoints x 3 passes
        assert len(client.calls) == 6

    @pytest.mark.asyncio
    async def test_suppression_is_case_insensitive(
        self, sample_app_config: AppConfig, make_client
    ) -> None:
        client = make_client(sample_app_config.endpoints("poly"), eth_call=RuntimeError("x"))
        executor = QueryExecutor(sample_app_config, clients={"poly": client})

        result = await executor.query("poly", SUPPRESSED.upper().replace("0X", "0x"), MIN_ABI, "symbol", [])
        assert result is None

    @pytest.mark.asyncio
    async def test_suppression_is_per_chain(
        self, sample_app_config: AppConfig, make_client
    ) -> None:
        client = make_client(sample_app_config.endpoints("avax"), eth_call=RuntimeError("x"))
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        with pytest.raises(ChainQueryError):
            await executor.query("avax", SUPPRESSED, MIN_ABI, "symbol", [])

    @pytest.mark.asyncio
    async def test_unknown_chain(self, sample_app_config: AppConfig) -> None:
        executor = QueryExecutor(sample_app_config, clients={})
        with pytest.raises(ValueError, match="Unknown chain"):
            await executor.query("eth", TOKEN, MIN_ABI, "symbol", [])


class TestNativeBalance:
    @pytest.mark.asyncio
    async def test_returns_balance(self, sample_app_config: AppConfig, make_client) -> None:
        client = make_client(sample_app_config.endpoints("avax"), balance=1500000000000000000)
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        assert await executor.get_native_balance("avax", TOKEN) == 1500000000000000000

    @pytest.mark.asyncio
    async def test_exhaustion_returns_none(self, sample_app_config: AppConfig, make_client) -> None:
        client = make_client(sample_app_config.endpoints("avax"), balance=ConnectionError("down"))
        executor = QueryExecutor(sample_app_config, clients={"avax": client})

        assert await executor.get_native_balance("avax", TOKEN) is None
        assert len(client.balance_calls) == 9
