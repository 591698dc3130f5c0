#!/usr/bin/env python3
"""Exception hierarchy for the Orbit deployer.

Three families are exposed so callers can tell whether retrying makes sense:

- ``DeploymentInputError``: permanent until the caller changes its input
  (parameters, target network, rollup address).
- ``RetryableTicketError``: the child chain reached a final outcome that is
  not a successful activation.
- ``InvariantViolation``: a defensive branch that should be unreachable given
  a well-behaved RPC endpoint.

RPC failures raised by web3 are never wrapped; they reach the caller as-is.
"""

from typing import Optional, Sequence


class OrbitDeployerError(Exception):
    """Base exception for all deployer operations."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class DeploymentInputError(OrbitDeployerError):
    """Raised when the supplied input can never produce a valid result."""


class RetryableTicketError(OrbitDeployerError):
    """Raised when cross-chain activation did not end in a redeemed ticket."""


class InvariantViolation(OrbitDeployerError):
    """Raised when an RPC response breaks an assumption that should always hold."""


class InvalidBatchPoster(DeploymentInputError):
    def __init__(self, batch_poster: str):
        super().__init__(f"Batch poster can't be set to the zero address ({batch_poster}).")
        self.batch_poster = batch_poster


class InvalidValidatorSet(DeploymentInputError):
    def __init__(self, validators: Sequence[str]):
        super().__init__(
            f"Validators can't be empty or contain the zero address, got {list(validators)}."
        )
        self.validators = list(validators)


class FeeTokenNotSupported(DeploymentInputError):
    def __init__(self, native_token: str):
        super().__init__(
            f"Native token {native_token} can only be used on AnyTrust chains. "
            'Set "arbitrum.DataAvailabilityCommittee" to true in the chain config.'
        )
        self.native_token = native_token


class UnsupportedFeeTokenDecimals(DeploymentInputError):
    def __init__(self, native_token: str, decimals: int):
        super().__init__(
            f"Native token {native_token} uses {decimals} decimals; "
            "only tokens with 18 decimals are supported."
        )
        self.native_token = native_token
        self.decimals = decimals


class UnsupportedParentChain(DeploymentInputError):
    def __init__(self, chain_id: int, supported: Sequence[int] = ()):
        message = f"Unsupported parent chain: {chain_id}."
        if supported:
            message += f" Supported chain ids: {', '.join(str(c) for c in sorted(supported))}"
        super().__init__(message)
        self.chain_id = chain_id


class UnexpectedEventCount(DeploymentInputError):
    def __init__(self, event_name: str, address: str, count: int):
        super().__init__(
            f"Expected to find 1 {event_name} event for address {address} but found {count}"
        )
        self.event_name = event_name
        self.address = address
        self.count = count


class UnexpectedTicketCount(RetryableTicketError):
    def __init__(self, transaction_hash: str, count: int):
        super().__init__(
            f"Unexpected number of retryable tickets for transaction {transaction_hash}: {count}"
        )
        self.transaction_hash = transaction_hash
        self.count = count


class TicketNotRedeemed(RetryableTicketError):
    def __init__(self, ticket_id: str, status: object):
        super().__init__(f"Unexpected status for retryable ticket {ticket_id}: {status}")
        self.ticket_id = ticket_id
        self.status = status


class MissingTransactionHash(InvariantViolation):
    def __init__(self, event_name: str, address: str):
        super().__init__(
            f"No transactionHash found in {event_name} event for address {address}"
        )
        self.event_name = event_name
        self.address = address


class MissingGasBase(InvariantViolation):
    def __init__(self, to: str):
        super().__init__(
            f"No gas limit base override was given and gas estimation for {to} returned nothing"
        )
        self.to = to


class TransactionReverted(OrbitDeployerError):
    def __init__(self, transaction_hash: str):
        super().__init__(f"Transaction {transaction_hash} reverted")
        self.transaction_hash = transaction_hash
