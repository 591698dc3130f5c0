"""
Orbit Deployer package.

Deploys Arbitrum Orbit rollups on a parent chain and reads back what a
deployment produced.
"""

from .config import DeployerConfig
from .core_contracts import fetch_core_contracts, get_core_contracts
from .deployer import RollupDeployer
from .deployment_builder import DeploymentTransactionBuilder, build_deployment_transaction
from .models import (
    CoreContracts,
    DeploymentParams,
    GasOverrides,
    RollupConfig,
    TicketStatus,
    TransactionRequest,
)
from .networks import DEFAULT_REGISTRY, NetworkRegistry, ParentChain
from .params_encoder import RollupParamsEncoder
from .retryable_tracker import RetryableTicketTracker, track_retryables
from .transaction_resolver import DeploymentTransactionResolver, resolve_deployment_transaction_hash

__all__ = [
    "DeployerConfig",
    "RollupDeployer",
    "RollupParamsEncoder",
    "DeploymentTransactionBuilder",
    "DeploymentTransactionResolver",
    "RetryableTicketTracker",
    "NetworkRegistry",
    "ParentChain",
    "DEFAULT_REGISTRY",
    "CoreContracts",
    "DeploymentParams",
    "GasOverrides",
    "RollupConfig",
    "TicketStatus",
    "TransactionRequest",
    "build_deployment_transaction",
    "resolve_deployment_transaction_hash",
    "track_retryables",
    "get_core_contracts",
    "fetch_core_contracts",
]
__version__ = "0.1.0"
