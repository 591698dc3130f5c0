#!/usr/bin/env python3
"""Unit tests for RetryableTicketTracker."""

import asyncio

import pytest
from hexbytes import HexBytes

from orbit_deployer.errors import RetryableTicketError, TicketNotRedeemed, UnexpectedTicketCount
from orbit_deployer.models import RetryableTicket, TicketResult, TicketStatus
from orbit_deployer.retryable_tracker import RetryableTicketTracker, track_retryables

PARENT_TX = HexBytes(b"\xab" * 32)
DESTINATION = "0x2222222222222222222222222222222222222222"
SENDER = "0x1111111111111111111111111111111111111111"

WAIT_FOREVER = object()


def make_ticket(n: int) -> RetryableTicket:
    return RetryableTicket(
        ticket_id=HexBytes(bytes([n]) * 32).to_0x_hex(),
        message_number=n,
        parent_transaction_hash=PARENT_TX.to_0x_hex(),
        sender=SENDER,
        destination=DESTINATION,
    )


class ScriptedReader:
    """Message reader whose per-ticket outcome is fixed up front.

    An outcome is a TicketStatus, an exception to raise, or WAIT_FOREVER.
    """

    def __init__(self, outcomes: dict[RetryableTicket, object]) -> None:
        self.outcomes = outcomes
        self.started = asyncio.Event()
        self.cancelled: list[str] = []

    async def messages_from_receipt(self, receipt, child_w3):
        return list(self.outcomes)

    async def wait_for_status(self, ticket, child_w3):
        outcome = self.outcomes[ticket]
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is WAIT_FOREVER:
            self.started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled.append(ticket.ticket_id)
                raise
        receipt = {"transactionHash": HexBytes(b"\xcc" * 32), "status": 1}
        child_receipt = receipt if outcome is TicketStatus.REDEEMED else None
        return TicketResult(ticket, outcome, child_receipt)


@pytest.fixture
def parent_receipt():
    return {"transactionHash": PARENT_TX, "status": 1, "logs": []}


class TestRetryableTicketTracker:
    """Test suite for RetryableTicketTracker."""

    @pytest.mark.asyncio
    async def test_single_redeemed_ticket(self, parent_receipt):
        reader = ScriptedReader({make_ticket(1): TicketStatus.REDEEMED})

        receipts = await track_retryables(parent_receipt, object(), message_reader=reader)

        assert len(receipts) == 1
        assert receipts[0]["status"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [TicketStatus.EXPIRED, TicketStatus.CREATION_FAILED, TicketStatus.FUNDS_DEPOSITED_ON_CHILD],
    )
    async def test_unredeemed_ticket(self, parent_receipt, status):
        ticket = make_ticket(1)
        reader = ScriptedReader({ticket: status})

        with pytest.raises(TicketNotRedeemed) as exc_info:
            await RetryableTicketTracker(reader).track(parent_receipt, object())

        assert exc_info.value.ticket_id == ticket.ticket_id
        assert exc_info.value.status is status
        assert isinstance(exc_info.value, RetryableTicketError)

    @pytest.mark.asyncio
    async def test_no_tickets(self, parent_receipt):
        with pytest.raises(UnexpectedTicketCount) as exc_info:
            await RetryableTicketTracker(ScriptedReader({})).track(parent_receipt, object())

        assert exc_info.value.count == 0
        assert exc_info.value.transaction_hash == PARENT_TX.to_0x_hex()

    @pytest.mark.asyncio
    async def test_two_tickets(self, parent_receipt):
        """All waits finish before the count check rejects the transaction."""
        reader = ScriptedReader({
            make_ticket(1): TicketStatus.REDEEMED,
            make_ticket(2): TicketStatus.REDEEMED,
        })
        tracker = RetryableTicketTracker(reader)

        results = await tracker.wait_for_results(parent_receipt, object())
        assert [r.status for r in results] == [TicketStatus.REDEEMED, TicketStatus.REDEEMED]

        with pytest.raises(UnexpectedTicketCount) as exc_info:
            await tracker.track(parent_receipt, object())
        assert exc_info.value.count == 2

    @pytest.mark.asyncio
    async def test_failure_cancels_sibling_waits(self, parent_receipt):
        """One failing wait cancels the others and its error propagates."""
        pending = make_ticket(2)
        reader = ScriptedReader({
            make_ticket(1): ConnectionError("child RPC down"),
            pending: WAIT_FOREVER,
        })

        with pytest.raises(ConnectionError, match="child RPC down"):
            await RetryableTicketTracker(reader).track(parent_receipt, object())

        assert reader.cancelled == [pending.ticket_id]

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_waits(self, parent_receipt):
        ticket = make_ticket(1)
        reader = ScriptedReader({ticket: WAIT_FOREVER})

        task = asyncio.create_task(RetryableTicketTracker(reader).track(parent_receipt, object()))
        await asyncio.wait_for(reader.started.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert reader.cancelled == [ticket.ticket_id]
