"""Multicall batching: many contract calls folded into one round trip."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from eth_utils import to_checksum_address

from ..chains.evm.abi import TRY_AGGREGATE, Abi, TryAggregateResult, get_method
from ..errors import BatchQueryError
from ..models import CallResult, LogicalCall
from .executor import QueryExecutor

logger = logging.getLogger(__name__)


class MulticallBatcher:
    """Build batches for the chain's multicall helper and split the results.

    Batches go to the first endpoint only and are never retried here. A
    failed helper invocation raises BatchQueryError; a failed call inside a
    successful batch is left out of the returned mapping.
    """

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    def _helper_address(self, chain: str) -> str:
        return self._executor.config.multicall_address(chain)

    async def execute(
        self, chain: str, abi: Abi, calls: Sequence[LogicalCall]
    ) -> list[CallResult]:
        """Run all ``calls`` in one helper invocation.

        Returns one CallResult per call, in order. Calls that failed on chain
        (or returned undecodable data) come back with ``success=False``.
        """
        if not calls:
            return []

        try:
            methods = [get_method(abi, c.method) for c in calls]
            payload = [
                (to_checksum_address(c.contract), m.encode_call(c.args))
                for c, m in zip(calls, methods)
            ]
            data = TRY_AGGREGATE.encode_call((False, payload))
        except Exception as e:
            raise BatchQueryError(chain, "Invalid multicall query", e) from e

        client = self._executor.client(chain)
        try:
            raw = await client.eth_call(client.endpoints[0], self._helper_address(chain), data)
            (returned,) = TRY_AGGREGATE.decode_values(raw)
        except Exception as e:
            raise BatchQueryError(chain, "Multicall invocation failed", e) from e

        if len(returned) != len(calls):
            raise BatchQueryError(
                chain,
                f"Multicall returned {len(returned)} results for {len(calls)} calls",
            )

        results: list[CallResult] = []
        for call, method, item in zip(calls, methods, returned):
            outcome = TryAggregateResult(*item)
            if not outcome.success or not outcome.return_data:
                results.append(CallResult(call.reference, False))
                continue
            try:
                values = method.decode_values(outcome.return_data)
            except Exception as e:
                logger.debug(
                    "Could not decode %s on %s: %s", call.method, call.contract, e
                )
                results.append(CallResult(call.reference, False))
                continue
            results.append(CallResult(call.reference, True, values))

        return results

    @staticmethod
    def _note_failures(
        chain: str,
        calls: Sequence[LogicalCall],
        results: Sequence[CallResult],
        failures: list[LogicalCall] | None,
    ) -> None:
        for call, result in zip(calls, results):
            if result.success:
                continue
            logger.debug(
                "Multicall dropped %s(%s) on %s (%s)",
                call.method, call.args, call.contract, chain,
            )
            if failures is not None:
                failures.append(call)

    async def one_method_many_contracts(
        self,
        chain: str,
        contracts: Sequence[str],
        abi: Abi,
        method: str,
        args: tuple[Any, ...] | list[Any] = (),
        failures: list[LogicalCall] | None = None,
    ) -> dict[str, tuple[Any, ...]]:
        """Same method on every contract: {contract: values}."""
        calls = [LogicalCall(c, method, tuple(args), c) for c in contracts]
        results = await self.execute(chain, abi, calls)
        self._note_failures(chain, calls, results, failures)
        return {
            call.contract: result.values
            for call, result in zip(calls, results)
            if result.success
        }

    async def many_methods_one_contract(
        self,
        chain: str,
        contract: str,
        abi: Abi,
        calls: Sequence[LogicalCall],
        failures: list[LogicalCall] | None = None,
    ) -> dict[str, tuple[Any, ...]]:
        """Several methods on one contract: {reference: values}.

        The ``contract`` field of each call is overridden with ``contract``.
        """
        targeted = [
            LogicalCall(contract, c.method, tuple(c.args), c.reference) for c in calls
        ]
        results = await self.execute(chain, abi, targeted)
        self._note_failures(chain, targeted, results, failures)
        return {r.reference: r.values for r in results if r.success}

    async def many_methods_many_contracts(
        self,
        chain: str,
        contracts: Sequence[str],
        abi: Abi,
        calls: Sequence[LogicalCall],
        failures: list[LogicalCall] | None = None,
    ) -> dict[str, dict[str, tuple[Any, ...]]]:
        """Every call on every contract: {contract: {reference: values}}."""
        targeted = [
            LogicalCall(contract, c.method, tuple(c.args), c.reference)
            for contract in contracts
            for c in calls
        ]
        results = await self.execute(chain, abi, targeted)
        self._note_failures(chain, targeted, results, failures)

        grouped: dict[str, dict[str, tuple[Any, ...]]] = {c: {} for c in contracts}
        for call, result in zip(targeted, results):
            if result.success:
                grouped[call.contract][result.reference] = result.values
        return grouped
