"""
Transaction request preparation against an AsyncWeb3 client.

Fills in everything a signer needs (nonce, fees, gas) for a contract call.
"""

import logging

from web3 import AsyncWeb3, Web3

from ..models import TransactionRequest

logger = logging.getLogger(__name__)


async def prepare_transaction_request(
    w3: AsyncWeb3,
    to: str,
    data: str,
    value: int,
    account: str,
    gas: int | None = None,
) -> TransactionRequest:
    """
    Build an unsigned transaction request.

    Gas is estimated only when ``gas`` is None; pass ``0`` to skip estimation
    and set the limit later.

    Args:
        w3: Client for the chain the transaction targets
        to: Destination address
        data: Encoded call data
        value: Native value in wei
        account: Sender address
        gas: Gas limit, None to estimate

    Returns:
        TransactionRequest with nonce, fees and gas populated
    """
    to = Web3.to_checksum_address(to)
    account = Web3.to_checksum_address(account)

    chain_id = await w3.eth.chain_id
    nonce = await w3.eth.get_transaction_count(account, "pending")

    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas_price: int | None = None

    latest_block = await w3.eth.get_block("latest")
    if (base_fee := latest_block.get("baseFeePerGas")) is not None:
        max_priority_fee_per_gas = await w3.eth.max_priority_fee
        max_fee_per_gas = base_fee * 2 + max_priority_fee_per_gas
    else:
        gas_price = await w3.eth.gas_price

    if gas is None:
        gas = await w3.eth.estimate_gas({
            "from": account,
            "to": to,
            "data": data,
            "value": value,
        })
        logger.debug(f"Estimated gas for call to {to}: {gas}")

    return TransactionRequest(
        to=to,
        data=data,
        value=value,
        from_=account,
        chain_id=chain_id,
        gas=gas,
        nonce=nonce,
        max_fee_per_gas=max_fee_per_gas,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
        gas_price=gas_price,
    )
