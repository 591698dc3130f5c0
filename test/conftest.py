#!/usr/bin/env python3
"""Shared test doubles for the AsyncWeb3 client and raw log entries."""

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes


async def _resolved(value: Any) -> Any:
    return value


class FakeEth:
    """Stand-in for ``AsyncWeb3.eth``.

    Awaitable properties (``chain_id``, ``max_priority_fee``, ``gas_price``)
    hand out a fresh coroutine per access, like the real client.
    """

    def __init__(self, chain_id: int = 42161) -> None:
        self.chain_id_value = chain_id
        self.max_priority_fee_value = 1_000_000
        self.gas_price_value = 20_000_000

        self.get_logs = AsyncMock(return_value=[])
        self.estimate_gas = AsyncMock(return_value=5_000_000)
        self.get_transaction_count = AsyncMock(return_value=7)
        self.get_block = AsyncMock(return_value={"baseFeePerGas": 10_000_000})
        self.get_transaction_receipt = AsyncMock()
        self.send_transaction = AsyncMock()
        self.wait_for_transaction_receipt = AsyncMock()
        self.contract = MagicMock()

    @property
    def chain_id(self):
        return _resolved(self.chain_id_value)

    @property
    def max_priority_fee(self):
        return _resolved(self.max_priority_fee_value)

    @property
    def gas_price(self):
        return _resolved(self.gas_price_value)

    def set_contract_call(self, function_name: str, result: Any = None, error: Exception | None = None) -> AsyncMock:
        """Make ``contract(...).functions.<function_name>(...).call()`` resolve or raise."""
        call = AsyncMock(return_value=result, side_effect=error)
        function = getattr(self.contract.return_value.functions, function_name)
        function.return_value.call = call
        return call


@pytest.fixture
def fake_w3():
    """Factory for fake AsyncWeb3 clients bound to a chain id."""
    def _make(chain_id: int = 42161) -> SimpleNamespace:
        return SimpleNamespace(eth=FakeEth(chain_id))
    return _make


@pytest.fixture
def make_log():
    """Factory for raw log entries as returned by ``eth_getLogs``."""
    def _make(
        address: str,
        topics: list[bytes | str],
        data: bytes = b"",
        transaction_hash: bytes | str | None = b"\xaa" * 32,
        block_number: int = 100,
        log_index: int = 0,
    ) -> dict[str, Any]:
        return {
            "address": address,
            "blockHash": HexBytes(b"\x0b" * 32),
            "blockNumber": block_number,
            "transactionHash": HexBytes(transaction_hash) if transaction_hash is not None else None,
            "transactionIndex": 0,
            "logIndex": log_index,
            "topics": [HexBytes(topic) for topic in topics],
            "data": HexBytes(data),
            "removed": False,
        }
    return _make
