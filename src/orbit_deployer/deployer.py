import logging

from aiohttp import ClientTimeout
from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import TxReceipt

from .config import DeployerConfig
from .core_contracts import fetch_core_contracts, get_core_contracts
from .deployment_builder import DeploymentTransactionBuilder
from .errors import TransactionReverted
from .models import CoreContracts, DeploymentResult, TransactionRequest
from .params_encoder import RollupParamsEncoder
from .retryable_tracker import RetryableTicketTracker
from .transaction_resolver import DeploymentTransactionResolver
from .utils.contract_utility import ContractUtility
from .utils.retryable_message_reader import ParentToChildMessageReader

# Get logger for this module
logger = logging.getLogger(__name__)


class RollupDeployer:
    """
    Deploys Orbit rollups through the parent chain's RollupCreator and reads
    back what a deployment produced.
    """

    # Rollup creation deploys a dozen contracts; give it time to be mined
    RECEIPT_TIMEOUT: int = 600

    def __init__(self, config: DeployerConfig) -> None:
        """
        Initialize the RollupDeployer with configuration.

        :param config: Deployer configuration object
        """
        self.config = config
        logger.info("Starting RollupDeployer initialization")
        self.config.log_config()

        request_kwargs = {"timeout": ClientTimeout(total=config.monitoring.request_timeout)}

        logger.debug(f"Connecting to parent chain at {config.parent_chain.rpc_url}")
        self.parent_w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(config.parent_chain.rpc_url, request_kwargs=request_kwargs)
        )

        self.child_w3: AsyncWeb3 | None = None
        if config.child_chain.rpc_url:
            logger.debug(f"Connecting to child chain at {config.child_chain.rpc_url}")
            self.child_w3 = AsyncWeb3(
                AsyncWeb3.AsyncHTTPProvider(config.child_chain.rpc_url, request_kwargs=request_kwargs)
            )

        self.account: LocalAccount | None = None
        if config.local_private_key:
            self.account = Account.from_key(config.local_private_key)
            self.parent_w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
            logger.debug(f"Signing transactions as {self.account.address}")

        self.contract_utility = ContractUtility()
        self.builder = DeploymentTransactionBuilder(
            encoder=RollupParamsEncoder(contract_util=self.contract_utility)
        )
        self.resolver = DeploymentTransactionResolver(contract_util=self.contract_utility)
        self.tracker = RetryableTicketTracker(
            ParentToChildMessageReader(
                contract_util=self.contract_utility,
                poll_interval=config.monitoring.poll_interval,
            )
        )

        logger.info("RollupDeployer initialized")

    def _sender(self, account: str | None) -> str:
        if account:
            return account
        if self.account is not None:
            return self.account.address
        raise ValueError("A sender account is required: set LOCAL_PRIVATE_KEY or pass --account")

    async def prepare(self, account: str | None = None) -> TransactionRequest:
        """
        Build the unsigned rollup deployment transaction.

        :param account: Sender, defaults to the configured signer
        :return: TransactionRequest ready for signing
        """
        if self.config.deployment is None:
            raise ValueError("No rollup configured (CHAIN_ID, BATCH_POSTER, VALIDATORS)")

        sender = self._sender(account)
        params = self.config.deployment.to_deployment_params(sender)

        return await self.builder.build(
            params,
            sender,
            self.parent_w3,
            gas_overrides=self.config.gas.to_overrides(),
            rollup_creator_address_override=self.config.parent_chain.rollup_creator_address,
        )

    async def deploy(self) -> DeploymentResult:
        """
        Prepare, sign and send the deployment transaction and decode its result.

        :return: Deployment transaction hash and created core contracts
        """
        if self.account is None:
            raise ValueError("Deploying requires LOCAL_PRIVATE_KEY")

        request = await self.prepare()

        tx_hash = HexBytes(await self.parent_w3.eth.send_transaction(request.to_tx_params()))
        logger.info(f"Deployment transaction sent: {tx_hash.to_0x_hex()}")

        receipt: TxReceipt = await self.parent_w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.RECEIPT_TIMEOUT
        )
        if (status := receipt.get("status", 0)) != 1:
            logger.error(f"Deployment transaction failed with status={status}")
            raise TransactionReverted(tx_hash.to_0x_hex())

        core_contracts = get_core_contracts(receipt, self.contract_utility)
        logger.info(
            f"Rollup {core_contracts.rollup} deployed in block {core_contracts.deployed_at_block_number}"
        )
        return DeploymentResult(transaction_hash=tx_hash.to_0x_hex(), core_contracts=core_contracts)

    async def fetch_transaction_hash(self, rollup: str) -> str:
        """Find the transaction that deployed ``rollup``."""
        return await self.resolver.resolve(rollup, self.parent_w3)

    async def fetch_core_contracts(self, rollup: str) -> CoreContracts:
        """Find the core contracts created alongside ``rollup``."""
        return await fetch_core_contracts(
            rollup,
            self.parent_w3,
            registry=self.resolver.registry,
            contract_util=self.contract_utility,
        )

    async def wait_for_retryables(self, transaction_hash: str) -> list[TxReceipt]:
        """
        Wait for the retryable ticket created by a parent chain transaction.

        :param transaction_hash: Parent chain transaction that created the ticket
        :return: Child chain redeem receipts
        """
        if self.child_w3 is None:
            raise ValueError("Tracking retryables requires CHILD_RPC_URL")

        receipt = await self.parent_w3.eth.get_transaction_receipt(HexBytes(transaction_hash))
        return await self.tracker.track(receipt, self.child_w3)
