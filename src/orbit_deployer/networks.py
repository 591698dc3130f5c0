#!/usr/bin/env python3
"""Parent chain registry.

Static per-network constants (RollupCreator address, the block the creator was
deployed at, and the max batch data size) live in a ``NetworkRegistry``
instance rather than module globals, so every operation can be handed a
different registry in tests.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from web3 import Web3

from .errors import UnsupportedParentChain

# Max batch data size depends on where the rollup settles
MAX_DATA_SIZE_PARENT_L1: Final[int] = 117_964
MAX_DATA_SIZE_PARENT_L2: Final[int] = 104_857


@dataclass(frozen=True, slots=True)
class ParentChain:
    """A chain that rollups can be deployed on.

    Attributes:
        name: Short network name
        chain_id: EVM chain id
        rollup_creator: Default RollupCreator contract address
        earliest_deployment_block: Block the RollupCreator was deployed at,
            None to scan from genesis
        max_data_size: Max batch data size for rollups settling here
    """

    name: str
    chain_id: int
    rollup_creator: str
    earliest_deployment_block: int | None
    max_data_size: int

    def __post_init__(self) -> None:
        if not Web3.is_address(self.rollup_creator):
            raise ValueError(
                f"Invalid RollupCreator address for {self.name}: {self.rollup_creator}"
            )
        object.__setattr__(self, 'rollup_creator', Web3.to_checksum_address(self.rollup_creator))


class NetworkRegistry:
    """Lookup of supported parent chains keyed by chain id."""

    def __init__(self, chains: Iterable[ParentChain]) -> None:
        self._chains: Mapping[int, ParentChain] = MappingProxyType(
            {chain.chain_id: chain for chain in chains}
        )

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    @property
    def chain_ids(self) -> list[int]:
        return sorted(self._chains)

    def get(self, chain_id: int) -> ParentChain | None:
        return self._chains.get(chain_id)

    def validate_parent_chain(self, chain_id: int) -> ParentChain:
        """Return the registry entry for ``chain_id``.

        Raises:
            UnsupportedParentChain: If the chain is not in the registry
        """
        if (chain := self._chains.get(chain_id)) is None:
            raise UnsupportedParentChain(chain_id, self.chain_ids)
        return chain

    def earliest_deployment_block(self, chain_id: int) -> int | None:
        chain = self._chains.get(chain_id)
        return chain.earliest_deployment_block if chain else None

    def rollup_creator_address(self, chain_id: int) -> str:
        return self.validate_parent_chain(chain_id).rollup_creator

    def max_data_size(self, chain_id: int) -> int:
        return self.validate_parent_chain(chain_id).max_data_size


DEFAULT_REGISTRY: Final[NetworkRegistry] = NetworkRegistry([
    # mainnet
    ParentChain(
        name="mainnet",
        chain_id=1,
        rollup_creator="0x90d68b056c411015eae3ec0b98ad94e2c91419f1",
        earliest_deployment_block=18_736_164,
        max_data_size=MAX_DATA_SIZE_PARENT_L1,
    ),
    ParentChain(
        name="arbitrum-one",
        chain_id=42161,
        rollup_creator="0x9cad81628ab7d8e239f1a5b497313341578c5f71",
        earliest_deployment_block=150_599_584,
        max_data_size=MAX_DATA_SIZE_PARENT_L2,
    ),
    ParentChain(
        name="arbitrum-nova",
        chain_id=42170,
        rollup_creator="0x9cad81628ab7d8e239f1a5b497313341578c5f71",
        earliest_deployment_block=47_798_739,
        max_data_size=MAX_DATA_SIZE_PARENT_L2,
    ),
    # testnet
    ParentChain(
        name="sepolia",
        chain_id=11155111,
        rollup_creator="0xfb774ea8a92ae528a596c8d90cbcf1bdbc4cee79",
        earliest_deployment_block=4_741_823,
        max_data_size=MAX_DATA_SIZE_PARENT_L1,
    ),
    ParentChain(
        name="holesky",
        chain_id=17000,
        rollup_creator="0xb512078282f462ba104231ad856464ceb0a7747e",
        earliest_deployment_block=1_083_992,
        max_data_size=MAX_DATA_SIZE_PARENT_L1,
    ),
    ParentChain(
        name="arbitrum-sepolia",
        chain_id=421614,
        rollup_creator="0x06e341073b2749e0bb9912461351f716decda9b0",
        earliest_deployment_block=654_628,
        max_data_size=MAX_DATA_SIZE_PARENT_L2,
    ),
    # local nitro-testnode, redeployed per run so scans start at genesis
    ParentChain(
        name="nitro-testnode-l1",
        chain_id=1337,
        rollup_creator="0x596eabe0291d4cdafac7ef53d16c92bf6922b5e0",
        earliest_deployment_block=None,
        max_data_size=MAX_DATA_SIZE_PARENT_L1,
    ),
    ParentChain(
        name="nitro-testnode-l2",
        chain_id=412346,
        rollup_creator="0x3baf9f08bad68869eedea90f2cc546bd80f1a651",
        earliest_deployment_block=None,
        max_data_size=MAX_DATA_SIZE_PARENT_L2,
    ),
])
