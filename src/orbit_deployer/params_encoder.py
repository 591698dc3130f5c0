#!/usr/bin/env python3
"""Rollup deployment parameter validation and encoding.

This module checks that a set of deployment parameters is legal, fills in the
deployment defaults and produces the ``createRollup`` call data together with
the native value the call needs.
"""

import logging
from dataclasses import dataclass
from typing import Final

from web3 import AsyncWeb3
from web3.constants import ADDRESS_ZERO

from .chain_config import is_any_trust_chain_config, parse_chain_config
from .errors import (
    FeeTokenNotSupported,
    InvalidBatchPoster,
    InvalidValidatorSet,
    UnsupportedFeeTokenDecimals,
)
from .models import DeploymentParams, EncodedDeployment, ResolvedDeploymentParams, is_zero_address
from .utils.contract_utility import ContractUtility

# Get logger for this module
logger = logging.getLogger(__name__)

REQUIRED_FEE_TOKEN_DECIMALS: Final[int] = 18

# Gas funded per retryable ticket when the parent chain's currency pays for the
# child chain factory deployments
RETRYABLES_FUNDING_GAS: Final[int] = 1_000_000


@dataclass(frozen=True, slots=True)
class DeploymentDefaults:
    """Values used for every optional deployment parameter the caller leaves unset."""

    native_token: str = ADDRESS_ZERO
    deploy_factories_to_l2: bool = False
    max_fee_per_gas_for_retryables: int = 100_000_000  # 0.1 gwei


DEPLOYMENT_DEFAULTS: Final[DeploymentDefaults] = DeploymentDefaults()


def is_custom_fee_token_address(address: str | None) -> bool:
    return address is not None and not is_zero_address(address)


def apply_deployment_defaults(
    params: DeploymentParams,
    max_data_size: int,
    defaults: DeploymentDefaults = DEPLOYMENT_DEFAULTS,
) -> ResolvedDeploymentParams:
    """Merge caller params over ``defaults`` and add the registry's ``max_data_size``."""
    return ResolvedDeploymentParams(
        config=params.config,
        batch_poster=params.batch_poster,
        validators=params.validators,
        max_data_size=max_data_size,
        native_token=params.native_token if params.native_token is not None else defaults.native_token,
        deploy_factories_to_l2=(
            params.deploy_factories_to_l2
            if params.deploy_factories_to_l2 is not None
            else defaults.deploy_factories_to_l2
        ),
        max_fee_per_gas_for_retryables=(
            params.max_fee_per_gas_for_retryables
            if params.max_fee_per_gas_for_retryables is not None
            else defaults.max_fee_per_gas_for_retryables
        ),
    )


def get_call_value(params: ResolvedDeploymentParams) -> int:
    """Native value ``createRollup`` must be sent with.

    No value is needed when no factories are deployed to the child chain (no
    retryables are created) or when a custom fee token pays for them.
    """
    if not params.deploy_factories_to_l2:
        return 0
    if is_custom_fee_token_address(params.native_token):
        return 0
    return params.max_fee_per_gas_for_retryables * RETRYABLES_FUNDING_GAS


class RollupParamsEncoder:
    """Validates rollup deployment parameters and encodes the ``createRollup`` call.

    The only network access is a single ``decimals()`` read, performed when a
    custom fee token is configured.
    """

    def __init__(
        self,
        contract_util: ContractUtility | None = None,
        defaults: DeploymentDefaults = DEPLOYMENT_DEFAULTS,
    ) -> None:
        self.contract_util = contract_util or ContractUtility()
        self.defaults = defaults

    def validate_addresses(self, params: DeploymentParams) -> None:
        """Reject a zero batch poster and empty or zero-containing validator sets."""
        if is_zero_address(params.batch_poster):
            raise InvalidBatchPoster(params.batch_poster)

        if not params.validators or any(is_zero_address(v) for v in params.validators):
            raise InvalidValidatorSet(params.validators)

    async def validate_fee_token(self, params: DeploymentParams, w3: AsyncWeb3) -> None:
        """Custom fee tokens are only legal on AnyTrust chains and must use 18 decimals."""
        native_token = params.native_token
        if native_token is None or not is_custom_fee_token_address(native_token):
            return

        chain_config = parse_chain_config(params.config.chain_config)
        if not is_any_trust_chain_config(chain_config):
            raise FeeTokenNotSupported(native_token)

        decimals = await self.contract_util.fetch_decimals(w3, native_token)
        if decimals != REQUIRED_FEE_TOKEN_DECIMALS:
            raise UnsupportedFeeTokenDecimals(native_token, decimals)

        logger.debug(f"Custom fee token {native_token} accepted ({decimals} decimals)")

    def encode(self, params: ResolvedDeploymentParams) -> str:
        return self.contract_util.encode_call(
            "RollupCreator", "createRollup", [params.to_abi_tuple()]
        )

    async def validate_and_encode(
        self,
        params: DeploymentParams,
        w3: AsyncWeb3,
        max_data_size: int,
    ) -> EncodedDeployment:
        """
        Validate ``params`` and produce the encoded deployment call.

        Args:
            params: Caller-supplied deployment parameters
            w3: Parent chain client, used only to read the fee token's decimals
            max_data_size: Max batch data size for the parent chain

        Returns:
            EncodedDeployment with call data, call value and the resolved params

        Raises:
            InvalidBatchPoster: If the batch poster is the zero address
            InvalidValidatorSet: If validators is empty or contains the zero address
            FeeTokenNotSupported: If a custom fee token is set on a non-AnyTrust chain
            UnsupportedFeeTokenDecimals: If the custom fee token does not use 18 decimals
        """
        self.validate_addresses(params)
        await self.validate_fee_token(params, w3)

        resolved = apply_deployment_defaults(params, max_data_size, self.defaults)
        value = get_call_value(resolved)
        data = self.encode(resolved)

        logger.info(
            f"Encoded createRollup for chain {resolved.config.chain_id} "
            f"({len(resolved.validators)} validators, value={value})"
        )
        return EncodedDeployment(data=data, value=value, params=resolved)
