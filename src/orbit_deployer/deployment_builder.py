#!/usr/bin/env python3
"""Rollup deployment transaction building.

This module turns deployment parameters into an unsigned ``createRollup``
transaction on the parent chain: it checks the parent chain is supported,
validates and encodes the parameters, asks the RPC endpoint to fill in the
transaction, and applies any gas limit override.
"""

import dataclasses
import logging

from web3 import AsyncWeb3, Web3

from .gas_overrides import estimation_gas_hint, resolve_gas_limit
from .models import DeploymentParams, GasOverrides, TransactionRequest
from .networks import DEFAULT_REGISTRY, NetworkRegistry
from .params_encoder import RollupParamsEncoder
from .utils.transaction_utility import prepare_transaction_request

# Get logger for this module
logger = logging.getLogger(__name__)


class DeploymentTransactionBuilder:
    """Builds ``RollupCreator.createRollup`` transaction requests."""

    def __init__(
        self,
        registry: NetworkRegistry = DEFAULT_REGISTRY,
        encoder: RollupParamsEncoder | None = None,
    ) -> None:
        """
        Initialize the DeploymentTransactionBuilder.

        Args:
            registry: Supported parent chains and their constants
            encoder: Parameter validator/encoder (a default one is created if omitted)
        """
        self.registry = registry
        self.encoder = encoder or RollupParamsEncoder()

    async def build(
        self,
        params: DeploymentParams,
        account: str,
        w3: AsyncWeb3,
        gas_overrides: GasOverrides | None = None,
        rollup_creator_address_override: str | None = None,
    ) -> TransactionRequest:
        """
        Prepare the rollup deployment transaction.

        Args:
            params: Rollup deployment parameters
            account: Address that will sign and send the transaction
            w3: Parent chain client
            gas_overrides: Optional gas limit base and percent increase
            rollup_creator_address_override: RollupCreator to call instead of
                the registry default

        Returns:
            Unsigned TransactionRequest carrying the parent chain id

        Raises:
            UnsupportedParentChain: If ``w3`` is connected to an unsupported chain
            DeploymentInputError: If the parameters are invalid
            MissingGasBase: If gas overrides are requested but no base is available
        """
        chain_id = await w3.eth.chain_id
        parent_chain = self.registry.validate_parent_chain(chain_id)

        encoded = await self.encoder.validate_and_encode(
            params, w3, max_data_size=parent_chain.max_data_size
        )

        to = (
            Web3.to_checksum_address(rollup_creator_address_override)
            if rollup_creator_address_override
            else parent_chain.rollup_creator
        )
        logger.info(f"Preparing createRollup on {parent_chain.name} via RollupCreator {to}")

        request = await prepare_transaction_request(
            w3,
            to=to,
            data=encoded.data,
            value=encoded.value,
            account=account,
            gas=estimation_gas_hint(gas_overrides),
        )

        if gas_overrides is not None:
            request = dataclasses.replace(
                request, gas=resolve_gas_limit(request.gas, gas_overrides, to=to)
            )

        return dataclasses.replace(request, chain_id=chain_id)


async def build_deployment_transaction(
    params: DeploymentParams,
    account: str,
    w3: AsyncWeb3,
    gas_overrides: GasOverrides | None = None,
    rollup_creator_address_override: str | None = None,
    registry: NetworkRegistry = DEFAULT_REGISTRY,
) -> TransactionRequest:
    """Shortcut for ``DeploymentTransactionBuilder(registry).build(...)``."""
    builder = DeploymentTransactionBuilder(registry=registry)
    return await builder.build(
        params,
        account,
        w3,
        gas_overrides=gas_overrides,
        rollup_creator_address_override=rollup_creator_address_override,
    )
