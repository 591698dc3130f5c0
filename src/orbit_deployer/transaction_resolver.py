#!/usr/bin/env python3
"""Deployment transaction lookup for an existing rollup.

A rollup contract emits ``RollupInitialized`` exactly once, in the transaction
that deployed it. This module finds that event in the parent chain's history
and returns the transaction hash. The scan starts at the block the
RollupCreator was deployed at when the network is known, else at genesis.
"""

import logging
from typing import Any, Literal

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.types import EventData, FilterParams

from .errors import MissingTransactionHash, UnexpectedEventCount
from .models import InitializationEvent
from .networks import DEFAULT_REGISTRY, NetworkRegistry
from .utils.contract_utility import ContractUtility

# Get logger for this module
logger = logging.getLogger(__name__)

INITIALIZATION_EVENT = "RollupInitialized"


class DeploymentTransactionResolver:
    """Resolves the deployment transaction of a rollup from its initialization event."""

    def __init__(
        self,
        registry: NetworkRegistry = DEFAULT_REGISTRY,
        contract_util: ContractUtility | None = None,
    ) -> None:
        self.registry = registry
        self.contract_util = contract_util or ContractUtility()

    def scan_start_block(self, chain_id: int) -> int | Literal["earliest"]:
        """Lower bound for the event scan on ``chain_id``."""
        earliest = self.registry.earliest_deployment_block(chain_id)
        return earliest if earliest is not None else "earliest"

    async def fetch_initialization_events(
        self,
        rollup: str,
        w3: AsyncWeb3,
    ) -> list[InitializationEvent]:
        """
        Fetch every ``RollupInitialized`` event emitted by ``rollup``.

        Args:
            rollup: Rollup contract address
            w3: Parent chain client

        Returns:
            Decoded events, in log order

        Raises:
            UnsupportedParentChain: If ``w3`` is connected to an unsupported chain
        """
        rollup = Web3.to_checksum_address(rollup)
        chain_id = await w3.eth.chain_id
        self.registry.validate_parent_chain(chain_id)

        from_block = self.scan_start_block(chain_id)
        logger.info(
            f"Scanning {INITIALIZATION_EVENT} events of {rollup} "
            f"from block {from_block} to latest"
        )

        filter_params: FilterParams = {
            "address": rollup,
            "topics": [self.contract_util.event_topic("Rollup", INITIALIZATION_EVENT).to_0x_hex()],
            "fromBlock": from_block,
            "toBlock": "latest",
        }
        logs = await w3.eth.get_logs(filter_params)
        events = self.contract_util.decode_logs("Rollup", INITIALIZATION_EVENT, logs)
        return [self._to_initialization_event(rollup, event) for event in events]

    async def resolve(self, rollup: str, w3: AsyncWeb3) -> str:
        """
        Return the hash of the transaction that deployed ``rollup``.

        Raises:
            UnsupportedParentChain: If ``w3`` is connected to an unsupported chain
            UnexpectedEventCount: Unless exactly one initialization event exists
            MissingTransactionHash: If the event carries no transaction hash
        """
        events = await self.fetch_initialization_events(rollup, w3)

        if len(events) != 1:
            raise UnexpectedEventCount(INITIALIZATION_EVENT, rollup, len(events))

        if not (transaction_hash := events[0].transaction_hash):
            raise MissingTransactionHash(INITIALIZATION_EVENT, rollup)

        logger.info(f"Rollup {rollup} was deployed in transaction {transaction_hash}")
        return transaction_hash

    @staticmethod
    def _to_initialization_event(rollup: str, event: EventData) -> InitializationEvent:
        args: Any = event["args"]
        transaction_hash = event.get("transactionHash")
        return InitializationEvent(
            rollup=rollup,
            machine_hash=HexBytes(args["machineHash"]).to_0x_hex(),
            chain_id=int(args["chainId"]),
            block_number=event.get("blockNumber"),
            transaction_hash=HexBytes(transaction_hash).to_0x_hex() if transaction_hash else None,
        )


async def resolve_deployment_transaction_hash(
    rollup: str,
    w3: AsyncWeb3,
    registry: NetworkRegistry = DEFAULT_REGISTRY,
) -> str:
    """Shortcut for ``DeploymentTransactionResolver(registry).resolve(...)``."""
    return await DeploymentTransactionResolver(registry=registry).resolve(rollup, w3)
