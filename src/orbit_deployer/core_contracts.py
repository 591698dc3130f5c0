#!/usr/bin/env python3
"""Core contract addresses of a deployed rollup.

``RollupCreator.createRollup`` emits a single ``RollupCreated`` event listing
every contract it deployed. This module decodes it from the deployment
receipt, or locates the deployment receipt for a rollup first.
"""

import logging

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.types import TxReceipt

from .errors import UnexpectedEventCount
from .models import CoreContracts
from .networks import DEFAULT_REGISTRY, NetworkRegistry
from .transaction_resolver import DeploymentTransactionResolver
from .utils.contract_utility import ContractUtility

# Get logger for this module
logger = logging.getLogger(__name__)

CREATION_EVENT = "RollupCreated"


def get_core_contracts(
    receipt: TxReceipt,
    contract_util: ContractUtility | None = None,
) -> CoreContracts:
    """
    Decode the core contract addresses from a deployment receipt.

    Raises:
        UnexpectedEventCount: Unless the receipt holds exactly one RollupCreated log
    """
    contract_util = contract_util or ContractUtility()
    events = contract_util.decode_logs("RollupCreator", CREATION_EVENT, list(receipt.get("logs", [])))

    if len(events) != 1:
        raise UnexpectedEventCount(CREATION_EVENT, receipt.get("to") or "", len(events))

    args = events[0]["args"]
    checksum = Web3.to_checksum_address
    return CoreContracts(
        rollup=checksum(args["rollupAddress"]),
        native_token=checksum(args["nativeToken"]),
        inbox=checksum(args["inboxAddress"]),
        outbox=checksum(args["outbox"]),
        rollup_event_inbox=checksum(args["rollupEventInbox"]),
        challenge_manager=checksum(args["challengeManager"]),
        admin_proxy=checksum(args["adminProxy"]),
        sequencer_inbox=checksum(args["sequencerInbox"]),
        bridge=checksum(args["bridge"]),
        upgrade_executor=checksum(args["upgradeExecutor"]),
        validator_utils=checksum(args["validatorUtils"]),
        validator_wallet_creator=checksum(args["validatorWalletCreator"]),
        deployed_at_block_number=int(receipt["blockNumber"]),
    )


async def fetch_core_contracts(
    rollup: str,
    w3: AsyncWeb3,
    registry: NetworkRegistry = DEFAULT_REGISTRY,
    contract_util: ContractUtility | None = None,
) -> CoreContracts:
    """
    Look up the deployment transaction of ``rollup`` and decode its core contracts.

    Raises:
        UnsupportedParentChain: If ``w3`` is connected to an unsupported chain
        UnexpectedEventCount: If the initialization or creation event is not unique
        MissingTransactionHash: If the initialization event carries no transaction hash
    """
    contract_util = contract_util or ContractUtility()
    resolver = DeploymentTransactionResolver(registry=registry, contract_util=contract_util)

    transaction_hash = await resolver.resolve(rollup, w3)
    receipt = await w3.eth.get_transaction_receipt(HexBytes(transaction_hash))

    core_contracts = get_core_contracts(receipt, contract_util)
    logger.info(
        f"Rollup {core_contracts.rollup} core contracts deployed at block "
        f"{core_contracts.deployed_at_block_number}"
    )
    return core_contracts
