#!/usr/bin/env python3
"""Data models for the Orbit deployer.

This module provides immutable data classes for rollup deployment parameters,
prepared transactions, the events read back from the parent chain and the
retryable tickets tracked on the child chain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.constants import ADDRESS_ZERO
from web3.types import TxParams, TxReceipt

# Consensus v10.2 wasm module root
DEFAULT_WASM_MODULE_ROOT = "0x6b94a7fc388fd8ef3def759297828dc311761e88d8179c7ee8d3887dc554f3c3"


def _checksum(value: str, label: str) -> str:
    if not Web3.is_address(value):
        raise ValueError(f"Invalid {label} address: {value}")
    return Web3.to_checksum_address(value)


def is_zero_address(address: str) -> bool:
    return int(address, 16) == 0


@dataclass(frozen=True, slots=True)
class MaxTimeVariation:
    """Sequencer inbox force-inclusion bounds."""

    delay_blocks: int = 5760
    future_blocks: int = 12
    delay_seconds: int = 86400
    future_seconds: int = 3600

    def to_abi_tuple(self) -> tuple[int, int, int, int]:
        return (self.delay_blocks, self.future_blocks, self.delay_seconds, self.future_seconds)


@dataclass(frozen=True, slots=True)
class RollupConfig:
    """The RollupCreator ``Config`` struct.

    Attributes:
        chain_id: Child chain id
        owner: Rollup owner
        chain_config: JSON-encoded chain config (see ``chain_config.prepare_chain_config``)
        confirm_period_blocks: Blocks before an assertion can be confirmed
        extra_challenge_time_blocks: Extra blocks granted to challenges
        stake_token: Token validators stake, zero address for the native currency
        base_stake: Amount validators stake
        wasm_module_root: Replay binary the rollup starts with
        loser_stake_escrow: Receiver of stakes lost in challenges
        genesis_block_num: Child chain genesis block number
        sequencer_inbox_max_time_variation: Force-inclusion bounds
    """

    chain_id: int
    owner: str
    chain_config: str
    confirm_period_blocks: int = 45818
    extra_challenge_time_blocks: int = 0
    stake_token: str = ADDRESS_ZERO
    base_stake: int = 100_000_000_000_000_000  # 0.1 ether
    wasm_module_root: str = DEFAULT_WASM_MODULE_ROOT
    loser_stake_escrow: str = ADDRESS_ZERO
    genesis_block_num: int = 0
    sequencer_inbox_max_time_variation: MaxTimeVariation = field(default_factory=MaxTimeVariation)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'owner', _checksum(self.owner, "owner"))
        object.__setattr__(self, 'stake_token', _checksum(self.stake_token, "stake token"))
        object.__setattr__(
            self, 'loser_stake_escrow', _checksum(self.loser_stake_escrow, "loser stake escrow")
        )
        if len(HexBytes(self.wasm_module_root)) != 32:
            raise ValueError(f"wasm module root must be 32 bytes, got {self.wasm_module_root}")

    def to_abi_tuple(self) -> tuple[Any, ...]:
        return (
            self.confirm_period_blocks,
            self.extra_challenge_time_blocks,
            self.stake_token,
            self.base_stake,
            bytes(HexBytes(self.wasm_module_root)),
            self.owner,
            self.loser_stake_escrow,
            self.chain_id,
            self.chain_config,
            self.genesis_block_num,
            self.sequencer_inbox_max_time_variation.to_abi_tuple(),
        )


@dataclass(frozen=True, slots=True)
class DeploymentParams:
    """Caller-supplied parameters for ``RollupCreator.createRollup``.

    Optional fields left as None are filled from the deployment defaults.
    The max batch data size is not a caller input: it is taken from the
    parent chain registry when the params are resolved.
    """

    config: RollupConfig
    batch_poster: str
    validators: tuple[str, ...]
    native_token: str | None = None
    deploy_factories_to_l2: bool | None = None
    max_fee_per_gas_for_retryables: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'batch_poster', _checksum(self.batch_poster, "batch poster"))
        object.__setattr__(
            self,
            'validators',
            tuple(_checksum(validator, "validator") for validator in self.validators),
        )
        if self.native_token is not None:
            object.__setattr__(self, 'native_token', _checksum(self.native_token, "native token"))


@dataclass(frozen=True, slots=True)
class ResolvedDeploymentParams:
    """Deployment parameters with every default applied, ready for encoding."""

    config: RollupConfig
    batch_poster: str
    validators: tuple[str, ...]
    max_data_size: int
    native_token: str
    deploy_factories_to_l2: bool
    max_fee_per_gas_for_retryables: int

    def to_abi_tuple(self) -> tuple[Any, ...]:
        return (
            self.config.to_abi_tuple(),
            self.batch_poster,
            list(self.validators),
            self.max_data_size,
            self.native_token,
            self.deploy_factories_to_l2,
            self.max_fee_per_gas_for_retryables,
        )


@dataclass(frozen=True, slots=True)
class EncodedDeployment:
    """Output of parameter validation: call data plus the native value to send."""

    data: str
    value: int
    params: ResolvedDeploymentParams


@dataclass(frozen=True, slots=True)
class GasOverrides:
    """Gas limit override.

    Attributes:
        base: Gas limit to use instead of the RPC estimate, None to estimate
        percent_increase: Integer percentage added on top of the base
    """

    base: int | None = None
    percent_increase: int = 0

    def __post_init__(self) -> None:
        if self.base is not None and self.base < 0:
            raise ValueError(f"Gas limit base must be non-negative, got {self.base}")
        if self.percent_increase < 0:
            raise ValueError(f"Percent increase must be non-negative, got {self.percent_increase}")


@dataclass(frozen=True, slots=True)
class TransactionRequest:
    """An unsigned transaction, ready for signing.

    Fee fields follow EIP-1559 when the parent chain reports a base fee,
    otherwise ``gas_price`` is set.
    """

    to: str
    data: str
    value: int
    from_: str
    chain_id: int
    gas: int | None = None
    nonce: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_price: int | None = None

    def to_tx_params(self) -> TxParams:
        """Convert to web3 ``TxParams``, dropping unset fields."""
        params: dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "from": self.from_,
            "chainId": self.chain_id,
            "gas": self.gas,
            "nonce": self.nonce,
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "gasPrice": self.gas_price,
        }
        return {key: value for key, value in params.items() if value is not None}  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return dict(self.to_tx_params())


@dataclass(frozen=True, slots=True)
class InitializationEvent:
    """A ``RollupInitialized`` event read from the parent chain.

    Attributes:
        rollup: Address of the rollup contract that emitted the event
        machine_hash: Initial machine hash
        chain_id: Child chain id
        block_number: Block number where the event was emitted
        transaction_hash: Hash of the transaction that emitted the event,
            None if the RPC endpoint did not report one
    """

    rollup: str
    machine_hash: str
    chain_id: int
    block_number: int | None
    transaction_hash: str | None

    def __str__(self) -> str:
        return (
            f"InitializationEvent(rollup={self.rollup[:10]}..., "
            f"chain={self.chain_id}, "
            f"block={self.block_number})"
        )


@dataclass(frozen=True, slots=True)
class CoreContracts:
    """Addresses of the contracts created by a rollup deployment."""

    rollup: str
    native_token: str
    inbox: str
    outbox: str
    rollup_event_inbox: str
    challenge_manager: str
    admin_proxy: str
    sequencer_inbox: str
    bridge: str
    upgrade_executor: str
    validator_utils: str
    validator_wallet_creator: str
    deployed_at_block_number: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


class TicketStatus(Enum):
    NOT_YET_CREATED = 1
    CREATION_FAILED = 2
    FUNDS_DEPOSITED_ON_CHILD = 3
    REDEEMED = 4
    EXPIRED = 5

    @property
    def is_terminal(self) -> bool:
        return self is not TicketStatus.NOT_YET_CREATED


@dataclass(frozen=True, slots=True)
class RetryableTicket:
    """A parent-to-child retryable ticket created by a parent chain transaction.

    Attributes:
        ticket_id: Child chain transaction hash of the ticket creation
        message_number: Inbox message number
        parent_transaction_hash: Parent chain transaction that created the ticket
        sender: Message sender as seen by the bridge
        destination: Child chain call target
        child_call_value: Value passed to the child chain call
        data: Child chain calldata
    """

    ticket_id: str
    message_number: int
    parent_transaction_hash: str
    sender: str
    destination: str
    child_call_value: int = 0
    data: bytes = b""

    def __str__(self) -> str:
        return f"RetryableTicket(id={self.ticket_id[:10]}..., message={self.message_number})"


@dataclass(frozen=True, slots=True)
class TicketResult:
    """Outcome of waiting for a retryable ticket.

    ``child_receipt`` is the redeem transaction receipt when the ticket was
    redeemed, the creation receipt when creation failed, else None.
    """

    ticket: RetryableTicket
    status: TicketStatus
    child_receipt: TxReceipt | None = None


@dataclass(frozen=True, slots=True)
class DeploymentResult:
    """Outcome of a rollup deployment.

    Attributes:
        transaction_hash: Parent chain deployment transaction
        core_contracts: Contracts created by the deployment
    """

    transaction_hash: str
    core_contracts: CoreContracts
