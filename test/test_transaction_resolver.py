#!/usr/bin/env python3
"""Unit tests for the deployment transaction resolver."""

import pytest
from eth_abi import abi
from hexbytes import HexBytes
from web3 import Web3

from orbit_deployer.errors import (
    MissingTransactionHash,
    UnexpectedEventCount,
    UnsupportedParentChain,
)
from orbit_deployer.networks import NetworkRegistry, ParentChain
from orbit_deployer.transaction_resolver import (
    DeploymentTransactionResolver,
    resolve_deployment_transaction_hash,
)

ROLLUP = "0x7777777777777777777777777777777777777777"
CREATOR = "0x6666666666666666666666666666666666666666"
MACHINE_HASH = b"\x42" * 32

ROLLUP_INITIALIZED_TOPIC = Web3.keccak(text="RollupInitialized(bytes32,uint256)")


@pytest.fixture
def registry():
    return NetworkRegistry([
        ParentChain("known", 1001, CREATOR, 5_000, 117_964),
        ParentChain("unknown-start", 1002, CREATOR, None, 117_964),
    ])


@pytest.fixture
def initialized_log(make_log):
    def _make(transaction_hash: bytes | None = b"\xaa" * 32, log_index: int = 0):
        return make_log(
            ROLLUP,
            [ROLLUP_INITIALIZED_TOPIC],
            abi.encode(["bytes32", "uint256"], [MACHINE_HASH, 98765]),
            transaction_hash=transaction_hash,
            log_index=log_index,
        )
    return _make


class TestDeploymentTransactionResolver:
    """Test suite for DeploymentTransactionResolver."""

    @pytest.mark.asyncio
    async def test_single_event_resolves(self, registry, fake_w3, initialized_log):
        w3 = fake_w3(chain_id=1001)
        w3.eth.get_logs.return_value = [initialized_log()]

        tx_hash = await resolve_deployment_transaction_hash(ROLLUP, w3, registry)

        assert tx_hash == HexBytes(b"\xaa" * 32).to_0x_hex()

    @pytest.mark.asyncio
    async def test_filter_uses_known_start_block(self, registry, fake_w3, initialized_log):
        """The scan starts at the network's RollupCreator deployment block."""
        w3 = fake_w3(chain_id=1001)
        w3.eth.get_logs.return_value = [initialized_log()]

        await DeploymentTransactionResolver(registry=registry).resolve(ROLLUP, w3)

        filter_params = w3.eth.get_logs.await_args.args[0]
        assert filter_params["fromBlock"] == 5_000
        assert filter_params["toBlock"] == "latest"
        assert filter_params["address"] == Web3.to_checksum_address(ROLLUP)
        assert HexBytes(filter_params["topics"][0]) == ROLLUP_INITIALIZED_TOPIC

    @pytest.mark.asyncio
    async def test_filter_falls_back_to_earliest(self, registry, fake_w3, initialized_log):
        w3 = fake_w3(chain_id=1002)
        w3.eth.get_logs.return_value = [initialized_log()]

        await DeploymentTransactionResolver(registry=registry).resolve(ROLLUP, w3)

        assert w3.eth.get_logs.await_args.args[0]["fromBlock"] == "earliest"

    @pytest.mark.asyncio
    async def test_default_registry_testnode_scans_from_genesis(self, fake_w3, initialized_log):
        w3 = fake_w3(chain_id=412346)
        w3.eth.get_logs.return_value = [initialized_log()]

        await DeploymentTransactionResolver().resolve(ROLLUP, w3)

        assert w3.eth.get_logs.await_args.args[0]["fromBlock"] == "earliest"

    @pytest.mark.asyncio
    async def test_no_event(self, registry, fake_w3):
        w3 = fake_w3(chain_id=1001)

        with pytest.raises(UnexpectedEventCount) as exc_info:
            await resolve_deployment_transaction_hash(ROLLUP, w3, registry)

        assert exc_info.value.count == 0
        assert exc_info.value.event_name == "RollupInitialized"

    @pytest.mark.asyncio
    async def test_duplicate_events(self, registry, fake_w3, initialized_log):
        """Two initialization events for one rollup is an error, not a pick."""
        w3 = fake_w3(chain_id=1001)
        w3.eth.get_logs.return_value = [initialized_log(log_index=0), initialized_log(log_index=1)]

        with pytest.raises(UnexpectedEventCount) as exc_info:
            await resolve_deployment_transaction_hash(ROLLUP, w3, registry)

        assert exc_info.value.count == 2

    @pytest.mark.asyncio
    async def test_missing_transaction_hash(self, registry, fake_w3, initialized_log):
        w3 = fake_w3(chain_id=1001)
        w3.eth.get_logs.return_value = [initialized_log(transaction_hash=None)]

        with pytest.raises(MissingTransactionHash):
            await resolve_deployment_transaction_hash(ROLLUP, w3, registry)

    @pytest.mark.asyncio
    async def test_unsupported_chain_skips_scan(self, registry, fake_w3):
        w3 = fake_w3(chain_id=5)

        with pytest.raises(UnsupportedParentChain):
            await resolve_deployment_transaction_hash(ROLLUP, w3, registry)

        w3.eth.get_logs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_events_are_decoded(self, registry, fake_w3, initialized_log):
        w3 = fake_w3(chain_id=1001)
        w3.eth.get_logs.return_value = [initialized_log()]

        events = await DeploymentTransactionResolver(registry=registry).fetch_initialization_events(ROLLUP, w3)

        assert len(events) == 1
        assert events[0].chain_id == 98765
        assert events[0].machine_hash == HexBytes(MACHINE_HASH).to_0x_hex()
        assert events[0].block_number == 100
