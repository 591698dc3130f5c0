#!/usr/bin/env python3
"""Helpers for the child chain's JSON chain config.

The RollupCreator takes the chain config as a JSON-encoded string. These
helpers build the standard config, parse it back and answer the questions the
deployment validation needs (is this an AnyTrust chain?).
"""

import copy
import json
from typing import Any

from web3 import Web3

DEFAULT_CHAIN_CONFIG: dict[str, Any] = {
    "homesteadBlock": 0,
    "daoForkBlock": None,
    "daoForkSupport": True,
    "eip150Block": 0,
    "eip150Hash": "0x0000000000000000000000000000000000000000000000000000000000000000",
    "eip155Block": 0,
    "eip158Block": 0,
    "byzantiumBlock": 0,
    "constantinopleBlock": 0,
    "petersburgBlock": 0,
    "istanbulBlock": 0,
    "muirGlacierBlock": 0,
    "berlinBlock": 0,
    "londonBlock": 0,
    "clique": {
        "period": 0,
        "epoch": 0,
    },
    "arbitrum": {
        "EnableArbOS": True,
        "AllowDebugPrecompiles": False,
        "DataAvailabilityCommittee": False,
        "InitialArbOSVersion": 11,
        "GenesisBlockNum": 0,
        "MaxCodeSize": 24576,
        "MaxInitCodeSize": 49152,
    },
}


def prepare_chain_config(
    chain_id: int,
    initial_chain_owner: str,
    data_availability_committee: bool = False,
    **arbitrum_overrides: Any,
) -> dict[str, Any]:
    """Build the standard chain config for a new child chain.

    Args:
        chain_id: Child chain id
        initial_chain_owner: Address that owns the chain after genesis
        data_availability_committee: True for an AnyTrust chain
        **arbitrum_overrides: Extra keys merged into the ``arbitrum`` section

    Returns:
        Chain config dictionary, ready for ``json.dumps``
    """
    if not Web3.is_address(initial_chain_owner):
        raise ValueError(f"Invalid initial chain owner: {initial_chain_owner}")

    config = copy.deepcopy(DEFAULT_CHAIN_CONFIG)
    config["chainId"] = chain_id
    config["arbitrum"].update(arbitrum_overrides)
    config["arbitrum"]["DataAvailabilityCommittee"] = data_availability_committee
    config["arbitrum"]["InitialChainOwner"] = Web3.to_checksum_address(initial_chain_owner)
    return config


def parse_chain_config(chain_config: str | dict[str, Any]) -> dict[str, Any]:
    """Parse a JSON-encoded chain config; dicts are returned unchanged."""
    if isinstance(chain_config, dict):
        return chain_config
    parsed = json.loads(chain_config)
    if not isinstance(parsed, dict):
        raise ValueError(f"Chain config must be a JSON object, got {type(parsed).__name__}")
    return parsed


def is_any_trust_chain_config(chain_config: str | dict[str, Any]) -> bool:
    """Whether the config enables the data availability committee (AnyTrust)."""
    arbitrum = parse_chain_config(chain_config).get("arbitrum") or {}
    return arbitrum.get("DataAvailabilityCommittee") is True
