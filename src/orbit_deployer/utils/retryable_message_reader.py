"""
Parent-to-child retryable ticket reader.

Derives the retryable tickets a parent chain transaction created (from the
Bridge ``MessageDelivered`` and Inbox ``InboxMessageDelivered`` logs in its
receipt) and polls the child chain until each ticket's outcome is known.
"""

import asyncio
import logging
from typing import Any, Final

import rlp
from eth_abi import abi
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TransactionNotFound
from web3.types import TxReceipt

from ..models import RetryableTicket, TicketResult, TicketStatus, is_zero_address
from .contract_utility import ContractUtility

ARB_RETRYABLE_TX_ADDRESS: Final[str] = "0x000000000000000000000000000000000000006E"

# L1MessageType_submitRetryableTx
SUBMIT_RETRYABLE_MESSAGE_KIND: Final[int] = 9

# Arbitrum retryable submission transaction type
SUBMIT_RETRYABLE_TX_TYPE: Final[bytes] = b"\x69"

TXN_SUCCESSFUL: Final[int] = 1

_RETRYABLE_DATA_WORDS: Final[int] = 9


def _word_to_address(word: int) -> str:
    return Web3.to_checksum_address("0x" + word.to_bytes(20, "big").hex())


def decode_retryable_message_data(data: bytes) -> dict[str, Any]:
    """
    Decode the packed retryable submission carried by ``InboxMessageDelivered``.

    Layout: nine 32-byte words (destination, child call value, deposit value,
    max submission cost, excess fee refund address, call value refund address,
    gas limit, max fee per gas, calldata length) followed by the raw calldata.
    """
    words = abi.decode(["uint256"] * _RETRYABLE_DATA_WORDS, data, strict=False)
    header_size = 32 * _RETRYABLE_DATA_WORDS
    calldata_length = words[8]

    return {
        "destination": _word_to_address(words[0]),
        "child_call_value": words[1],
        "deposit_value": words[2],
        "max_submission_cost": words[3],
        "excess_fee_refund_address": _word_to_address(words[4]),
        "call_value_refund_address": _word_to_address(words[5]),
        "gas_limit": words[6],
        "max_fee_per_gas": words[7],
        "data": bytes(data[header_size:header_size + calldata_length]),
    }


def calculate_retryable_ticket_id(
    child_chain_id: int,
    message_number: int,
    sender: str,
    parent_base_fee: int,
    message: dict[str, Any],
) -> HexBytes:
    """
    Child chain transaction hash of a retryable ticket's creation.

    The hash is keccak of the ``0x69`` typed submit-retryable transaction, whose
    fields are all available from the parent chain's bridge and inbox events.
    """
    destination = message["destination"]
    fields: list[int | bytes] = [
        child_chain_id,
        message_number.to_bytes(32, "big"),
        bytes(HexBytes(sender)),
        parent_base_fee,
        message["deposit_value"],
        message["max_fee_per_gas"],
        message["gas_limit"],
        # empty for contract creation
        b"" if is_zero_address(destination) else bytes(HexBytes(destination)),
        message["child_call_value"],
        bytes(HexBytes(message["call_value_refund_address"])),
        message["max_submission_cost"],
        bytes(HexBytes(message["excess_fee_refund_address"])),
        message["data"],
    ]
    return HexBytes(Web3.keccak(SUBMIT_RETRYABLE_TX_TYPE + rlp.encode(fields)))


class ParentToChildMessageReader:
    """
    Reads retryable tickets out of parent chain receipts and polls their status.

    Polling never times out; callers needing a bound should wrap the wait
    (e.g. ``asyncio.wait_for``) or use a transport with its own timeout.
    """

    def __init__(
        self,
        contract_util: ContractUtility | None = None,
        poll_interval: float = 5.0,
    ) -> None:
        """
        Initialize the reader.

        Args:
            contract_util: ABI loading and log decoding
            poll_interval: Seconds between child chain status checks
        """
        if poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {poll_interval}")

        self.contract_util = contract_util or ContractUtility()
        self.poll_interval = poll_interval

        # Setup logging
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def messages_from_receipt(
        self,
        receipt: TxReceipt,
        child_w3: AsyncWeb3,
    ) -> list[RetryableTicket]:
        """
        Derive the retryable tickets created by a parent chain transaction.

        Args:
            receipt: Parent chain transaction receipt
            child_w3: Child chain client (its chain id is part of the ticket id)

        Returns:
            One RetryableTicket per submit-retryable message, in log order
        """
        logs = list(receipt.get("logs", []))
        parent_tx_hash = HexBytes(receipt["transactionHash"]).to_0x_hex()

        deliveries = [
            event
            for event in self.contract_util.decode_logs("Bridge", "MessageDelivered", logs)
            if event["args"]["kind"] == SUBMIT_RETRYABLE_MESSAGE_KIND
        ]
        if not deliveries:
            return []

        inbox_messages = {
            event["args"]["messageNum"]: HexBytes(event["args"]["data"])
            for event in self.contract_util.decode_logs("Inbox", "InboxMessageDelivered", logs)
        }

        child_chain_id = await child_w3.eth.chain_id
        tickets: list[RetryableTicket] = []

        for delivery in deliveries:
            args = delivery["args"]
            message_number = args["messageIndex"]

            if (data := inbox_messages.get(message_number)) is None:
                raise ValueError(
                    f"Transaction {parent_tx_hash} delivered message {message_number} "
                    "without a matching InboxMessageDelivered event"
                )

            message = decode_retryable_message_data(data)
            ticket_id = calculate_retryable_ticket_id(
                child_chain_id,
                message_number,
                args["sender"],
                args["baseFeeL1"],
                message,
            )
            tickets.append(RetryableTicket(
                ticket_id=ticket_id.to_0x_hex(),
                message_number=message_number,
                parent_transaction_hash=parent_tx_hash,
                sender=Web3.to_checksum_address(args["sender"]),
                destination=message["destination"],
                child_call_value=message["child_call_value"],
                data=message["data"],
            ))

        self.logger.info(
            f"Transaction {parent_tx_hash} created {len(tickets)} retryable ticket(s)"
        )
        return tickets

    async def _get_receipt(self, child_w3: AsyncWeb3, tx_hash: str | bytes) -> TxReceipt | None:
        try:
            return await child_w3.eth.get_transaction_receipt(HexBytes(tx_hash))
        except TransactionNotFound:
            return None

    async def _ticket_is_alive(self, child_w3: AsyncWeb3, ticket_id: str) -> bool:
        arb_retryable_tx = child_w3.eth.contract(
            address=Web3.to_checksum_address(ARB_RETRYABLE_TX_ADDRESS),
            abi=self.contract_util.get_contract_abi("ArbRetryableTx"),
        )
        try:
            await arb_retryable_tx.functions.getTimeout(bytes(HexBytes(ticket_id))).call()
        except ContractLogicError:
            # NoTicketWithID: redeemed manually, cancelled or expired
            return False
        return True

    async def _find_manual_redeem(
        self,
        ticket: RetryableTicket,
        creation_receipt: TxReceipt,
        child_w3: AsyncWeb3,
    ) -> TxReceipt | None:
        """
        Search the child chain for a later redeem of a ticket that no longer exists.

        A successful manual redeem deletes the ticket just like expiry does, so
        every ``RedeemScheduled`` log for the ticket since its creation block is
        checked for a successful retry transaction.

        Returns:
            Receipt of the successful retry transaction, or None
        """
        filter_params = {
            "address": Web3.to_checksum_address(ARB_RETRYABLE_TX_ADDRESS),
            "topics": [
                self.contract_util.event_topic("ArbRetryableTx", "RedeemScheduled").to_0x_hex(),
                HexBytes(ticket.ticket_id).to_0x_hex(),
            ],
            "fromBlock": creation_receipt["blockNumber"],
            "toBlock": "latest",
        }
        logs = await child_w3.eth.get_logs(filter_params)
        redeems = self.contract_util.decode_logs("ArbRetryableTx", "RedeemScheduled", list(logs))

        for redeem in redeems:
            retry_tx_hash = HexBytes(redeem["args"]["retryTxHash"]).to_0x_hex()
            redeem_receipt = await self._get_receipt(child_w3, retry_tx_hash)
            if redeem_receipt is not None and redeem_receipt["status"] == TXN_SUCCESSFUL:
                self.logger.info(f"{ticket} was redeemed manually in {retry_tx_hash}")
                return redeem_receipt

        self.logger.debug(f"No successful redeem found for {ticket} among {len(redeems)} attempt(s)")
        return None

    async def get_status(self, ticket: RetryableTicket, child_w3: AsyncWeb3) -> TicketResult:
        """Check a ticket's current status on the child chain once."""
        creation_receipt = await self._get_receipt(child_w3, ticket.ticket_id)
        if creation_receipt is None:
            return TicketResult(ticket, TicketStatus.NOT_YET_CREATED)

        if creation_receipt["status"] != TXN_SUCCESSFUL:
            return TicketResult(ticket, TicketStatus.CREATION_FAILED, creation_receipt)

        ticket_topic = HexBytes(ticket.ticket_id)
        redeems = [
            event
            for event in self.contract_util.decode_logs(
                "ArbRetryableTx", "RedeemScheduled", list(creation_receipt.get("logs", []))
            )
            if HexBytes(event["args"]["ticketId"]) == ticket_topic
        ]

        for redeem in redeems:
            redeem_receipt = await self._get_receipt(child_w3, redeem["args"]["retryTxHash"])
            if redeem_receipt is None:
                # scheduled but not yet executed
                return TicketResult(ticket, TicketStatus.NOT_YET_CREATED)
            if redeem_receipt["status"] == TXN_SUCCESSFUL:
                return TicketResult(ticket, TicketStatus.REDEEMED, redeem_receipt)

        if await self._ticket_is_alive(child_w3, ticket.ticket_id):
            return TicketResult(ticket, TicketStatus.FUNDS_DEPOSITED_ON_CHILD)

        manual_redeem = await self._find_manual_redeem(ticket, creation_receipt, child_w3)
        if manual_redeem is not None:
            return TicketResult(ticket, TicketStatus.REDEEMED, manual_redeem)

        return TicketResult(ticket, TicketStatus.EXPIRED)

    async def wait_for_status(self, ticket: RetryableTicket, child_w3: AsyncWeb3) -> TicketResult:
        """
        Poll until the ticket's outcome is known.

        Returns as soon as the ticket leaves ``NOT_YET_CREATED``.
        """
        self.logger.info(f"Waiting for {ticket} on the child chain")

        while True:
            result = await self.get_status(ticket, child_w3)
            if result.status.is_terminal:
                self.logger.info(f"{ticket} reached status {result.status.name}")
                return result

            self.logger.debug(f"{ticket} not created yet, checking again in {self.poll_interval}s")
            await asyncio.sleep(self.poll_interval)
