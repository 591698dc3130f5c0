#!/usr/bin/env python3
"""Retryable ticket tracking for rollup deployments.

A deployment transaction that deploys factories to the child chain does so
through a parent-to-child retryable ticket. This module waits for the ticket
created by a parent chain transaction to reach its final outcome and returns
the child chain receipt of the redemption.
"""

import asyncio
import logging
from typing import Protocol

from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.types import TxReceipt

from .errors import TicketNotRedeemed, UnexpectedTicketCount
from .models import RetryableTicket, TicketResult, TicketStatus
from .utils.retryable_message_reader import ParentToChildMessageReader

# Get logger for this module
logger = logging.getLogger(__name__)


class CrossChainMessageReader(Protocol):
    """Source of retryable tickets and their child chain outcomes."""

    async def messages_from_receipt(
        self, receipt: TxReceipt, child_w3: AsyncWeb3
    ) -> list[RetryableTicket]: ...

    async def wait_for_status(
        self, ticket: RetryableTicket, child_w3: AsyncWeb3
    ) -> TicketResult: ...


class RetryableTicketTracker:
    """Waits for the retryable tickets of a parent chain transaction."""

    def __init__(self, message_reader: CrossChainMessageReader | None = None) -> None:
        """
        Initialize the RetryableTicketTracker.

        Args:
            message_reader: Ticket source (defaults to a ParentToChildMessageReader)
        """
        self.message_reader = message_reader or ParentToChildMessageReader()

    async def wait_for_results(
        self,
        parent_receipt: TxReceipt,
        child_w3: AsyncWeb3,
    ) -> list[TicketResult]:
        """
        Wait for every ticket created by ``parent_receipt`` concurrently.

        If any wait fails or this coroutine is cancelled, the remaining waits
        are cancelled before the error propagates.
        """
        tickets = await self.message_reader.messages_from_receipt(parent_receipt, child_w3)
        tasks = [
            asyncio.create_task(
                self.message_reader.wait_for_status(ticket, child_w3),
                name=f"retryable-{ticket.ticket_id}",
            )
            for ticket in tickets
        ]

        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return list(results)

    async def track(self, parent_receipt: TxReceipt, child_w3: AsyncWeb3) -> list[TxReceipt]:
        """
        Wait for the single retryable ticket of a deployment transaction.

        Args:
            parent_receipt: Receipt of the deployment transaction on the parent chain
            child_w3: Child chain client

        Returns:
            One-element list holding the child chain receipt of the redemption

        Raises:
            UnexpectedTicketCount: Unless the transaction created exactly one ticket
            TicketNotRedeemed: If the ticket's final status is not REDEEMED
        """
        transaction_hash = HexBytes(parent_receipt["transactionHash"]).to_0x_hex()
        results = await self.wait_for_results(parent_receipt, child_w3)

        if len(results) != 1:
            raise UnexpectedTicketCount(transaction_hash, len(results))

        result = results[0]
        if result.status is not TicketStatus.REDEEMED or result.child_receipt is None:
            raise TicketNotRedeemed(result.ticket.ticket_id, result.status)

        logger.info(f"Retryable ticket {result.ticket.ticket_id} of {transaction_hash} redeemed")
        return [result.child_receipt]


async def track_retryables(
    parent_receipt: TxReceipt,
    child_w3: AsyncWeb3,
    message_reader: CrossChainMessageReader | None = None,
) -> list[TxReceipt]:
    """Shortcut for ``RetryableTicketTracker(message_reader).track(...)``."""
    return await RetryableTicketTracker(message_reader).track(parent_receipt, child_w3)
