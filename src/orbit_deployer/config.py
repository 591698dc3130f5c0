#!/usr/bin/env python3
"""Configuration management for the Orbit deployer.

This module provides type-safe configuration dataclasses with validation for
the deployer service. Configuration is loaded from environment variables with
sensible defaults where appropriate.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

from .chain_config import prepare_chain_config
from .models import DeploymentParams, GasOverrides, RollupConfig

# Get logger for this module
logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _validate_rpc_url(rpc_url: str, env_name: str) -> None:
    if not rpc_url:
        raise ValueError(f"RPC URL is required ({env_name})")

    parsed = urlparse(rpc_url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(
            f"Invalid RPC URL scheme: {parsed.scheme} ({env_name}). "
            "Expected http or https"
        )


def _checksum(address: str, label: str) -> str:
    if not Web3.is_address(address):
        raise ValueError(f"Invalid {label} address: {address}")
    return Web3.to_checksum_address(address)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be true or false, got {raw!r}")


def _env_optional_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw, 0)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    value = _env_optional_int(name)
    return default if value is None else value


@dataclass(frozen=True, slots=True)
class ParentChainConfig:
    """Configuration for the parent chain the rollup is deployed on.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint for the parent chain
        rollup_creator_address: RollupCreator to use instead of the registry default
    """

    rpc_url: str
    rollup_creator_address: str | None = None

    def __post_init__(self) -> None:
        """Validate parent chain configuration."""
        _validate_rpc_url(self.rpc_url, "PARENT_RPC_URL")

        if self.rollup_creator_address:
            object.__setattr__(
                self,
                'rollup_creator_address',
                _checksum(self.rollup_creator_address, "RollupCreator"),
            )


@dataclass(frozen=True, slots=True)
class ChildChainConfig:
    """Configuration for the child chain; retryable tracking needs an RPC URL."""

    rpc_url: str | None = None

    def __post_init__(self) -> None:
        if self.rpc_url:
            _validate_rpc_url(self.rpc_url, "CHILD_RPC_URL")


@dataclass(frozen=True, slots=True)
class RollupDeploymentConfig:
    """Parameters of the rollup to deploy.

    Attributes:
        chain_id: Child chain id
        batch_poster: Batch poster address
        validators: Validator addresses
        chain_owner: Rollup owner (the deployer account when unset)
        native_token: Custom fee token, None for the parent chain's currency
        data_availability_committee: Deploy an AnyTrust chain
        deploy_factories_to_l2: Deploy deterministic factories to the child chain
    """

    chain_id: int
    batch_poster: str
    validators: tuple[str, ...]
    chain_owner: str | None = None
    native_token: str | None = None
    data_availability_committee: bool = False
    deploy_factories_to_l2: bool = False

    def __post_init__(self) -> None:
        """Validate deployment configuration."""
        if self.chain_id <= 0:
            raise ValueError(f"Chain ID must be positive, got {self.chain_id}")

        object.__setattr__(self, 'batch_poster', _checksum(self.batch_poster, "batch poster"))

        if not self.validators:
            raise ValueError("At least one validator is required (VALIDATORS)")
        object.__setattr__(
            self,
            'validators',
            tuple(_checksum(validator, "validator") for validator in self.validators),
        )

        if self.chain_owner:
            object.__setattr__(self, 'chain_owner', _checksum(self.chain_owner, "chain owner"))
        if self.native_token:
            object.__setattr__(self, 'native_token', _checksum(self.native_token, "native token"))

    def to_deployment_params(self, deployer: str) -> DeploymentParams:
        """
        Build deployment parameters for this rollup.

        Args:
            deployer: Account sending the deployment, owner when none is configured
        """
        owner = self.chain_owner or Web3.to_checksum_address(deployer)
        chain_config = prepare_chain_config(
            self.chain_id,
            owner,
            data_availability_committee=self.data_availability_committee,
        )
        return DeploymentParams(
            config=RollupConfig(
                chain_id=self.chain_id,
                owner=owner,
                chain_config=json.dumps(chain_config, separators=(",", ":")),
            ),
            batch_poster=self.batch_poster,
            validators=self.validators,
            native_token=self.native_token,
            deploy_factories_to_l2=self.deploy_factories_to_l2,
        )


@dataclass(frozen=True, slots=True)
class GasConfig:
    """Gas limit override for the deployment transaction."""

    limit_base: int | None = None
    percent_increase: int = 0

    # Sanity bound, well above any parent chain block gas limit
    MAX_LIMIT_BASE: ClassVar[int] = 1_000_000_000

    def __post_init__(self) -> None:
        if self.limit_base is not None:
            if self.limit_base < 0:
                raise ValueError(f"Gas limit base must be non-negative, got {self.limit_base}")
            if self.limit_base > self.MAX_LIMIT_BASE:
                raise ValueError(
                    f"Gas limit base too high (max {self.MAX_LIMIT_BASE}), got {self.limit_base}"
                )
        if self.percent_increase < 0:
            raise ValueError(f"Percent increase must be non-negative, got {self.percent_increase}")

    def to_overrides(self) -> GasOverrides | None:
        """Gas overrides to pass to the transaction builder, None when nothing is overridden."""
        if self.limit_base is None and self.percent_increase == 0:
            return None
        return GasOverrides(base=self.limit_base, percent_increase=self.percent_increase)


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Configuration for RPC access and retryable polling."""
    poll_interval: int = 5  # seconds between retryable status checks
    request_timeout: int = 30  # HTTP request timeout in seconds

    def __post_init__(self) -> None:
        """Validate monitoring configuration."""
        if self.poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.poll_interval > 300:
            raise ValueError(f"Poll interval too long (max 300s), got {self.poll_interval}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")


@dataclass(frozen=True, slots=True)
class DeployerConfig:
    """Main configuration for the Orbit deployer.

    Attributes:
        parent_chain: Parent chain access
        child_chain: Child chain access
        deployment: Rollup to deploy, None for read-only commands
        gas: Gas limit override
        monitoring: RPC timeout and polling settings
        local_private_key: Key signing the deployment transaction
    """

    parent_chain: ParentChainConfig
    child_chain: ChildChainConfig = field(default_factory=ChildChainConfig)
    deployment: RollupDeploymentConfig | None = None
    gas: GasConfig = field(default_factory=GasConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    local_private_key: str | None = None

    def __post_init__(self) -> None:
        """Validate deployer configuration."""
        if self.local_private_key:
            # Basic private key validation (should be 64 hex chars, optionally with 0x prefix)
            key = self.local_private_key
            if key.startswith('0x'):
                key = key[2:]

            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )

            try:
                int(key, 16)
            except ValueError:
                raise ValueError(
                    "Invalid private key format. Must be hexadecimal"
                ) from None

    @classmethod
    def from_env(
        cls,
        require_deployment: bool = False,
        require_signer: bool = False,
    ) -> "DeployerConfig":
        """Load configuration from environment variables.

        Args:
            require_deployment: Fail unless the rollup parameters are configured
            require_signer: Fail unless LOCAL_PRIVATE_KEY is set

        Returns:
            DeployerConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        parent_rpc_url = os.environ.get("PARENT_RPC_URL", "")
        if not parent_rpc_url:
            raise ValueError(
                "PARENT_RPC_URL environment variable is required. "
                "Example: https://sepolia-rollup.arbitrum.io/rpc"
            )

        parent_config = ParentChainConfig(
            rpc_url=parent_rpc_url,
            rollup_creator_address=os.environ.get("ROLLUP_CREATOR_ADDRESS") or None,
        )
        child_config = ChildChainConfig(rpc_url=os.environ.get("CHILD_RPC_URL") or None)

        deployment_config: RollupDeploymentConfig | None = None
        chain_id = _env_optional_int("CHAIN_ID")
        if chain_id is not None:
            batch_poster = os.environ.get("BATCH_POSTER", "")
            if not batch_poster:
                raise ValueError(
                    "BATCH_POSTER environment variable is required when CHAIN_ID is set"
                )
            validators = tuple(
                v.strip() for v in os.environ.get("VALIDATORS", "").split(",") if v.strip()
            )
            deployment_config = RollupDeploymentConfig(
                chain_id=chain_id,
                batch_poster=batch_poster,
                validators=validators,
                chain_owner=os.environ.get("CHAIN_OWNER") or None,
                native_token=os.environ.get("NATIVE_TOKEN") or None,
                data_availability_committee=_env_bool("DATA_AVAILABILITY_COMMITTEE"),
                deploy_factories_to_l2=_env_bool("DEPLOY_FACTORIES_TO_L2"),
            )
        elif require_deployment:
            raise ValueError(
                "CHAIN_ID environment variable is required. "
                "This is the chain id of the rollup to deploy."
            )

        gas_config = GasConfig(
            limit_base=_env_optional_int("GAS_LIMIT_BASE"),
            percent_increase=_env_int("GAS_LIMIT_PERCENT_INCREASE", 0),
        )

        monitoring_config = MonitoringConfig(
            poll_interval=_env_int("POLL_INTERVAL", 5),
            request_timeout=_env_int("REQUEST_TIMEOUT", 30),
        )

        local_private_key = os.environ.get("LOCAL_PRIVATE_KEY") or None
        if require_signer and not local_private_key:
            raise ValueError(
                "LOCAL_PRIVATE_KEY environment variable is required. "
                "This key signs the deployment transaction."
            )

        return cls(
            parent_chain=parent_config,
            child_chain=child_config,
            deployment=deployment_config,
            gas=gas_config,
            monitoring=monitoring_config,
            local_private_key=local_private_key,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Orbit Deployer Configuration")
        logger.info("=" * 60)

        logger.info("Parent Chain:")
        logger.info(f"  RPC URL: {self.parent_chain.rpc_url}")
        logger.info(
            f"  RollupCreator: {self.parent_chain.rollup_creator_address or '[REGISTRY DEFAULT]'}"
        )

        logger.info("Child Chain:")
        logger.info(f"  RPC URL: {self.child_chain.rpc_url or '[NOT SET]'}")

        if self.deployment:
            logger.info("Rollup:")
            logger.info(f"  Chain ID: {self.deployment.chain_id}")
            logger.info(f"  Owner: {self.deployment.chain_owner or '[DEPLOYER]'}")
            logger.info(f"  Batch Poster: {self.deployment.batch_poster}")
            logger.info(f"  Validators: {', '.join(self.deployment.validators)}")
            logger.info(f"  Native Token: {self.deployment.native_token or '[PARENT CURRENCY]'}")
            logger.info(f"  AnyTrust: {self.deployment.data_availability_committee}")
            logger.info(f"  Deploy Factories To L2: {self.deployment.deploy_factories_to_l2}")

        logger.info("Gas Settings:")
        logger.info(
            f"  Limit Base: {self.gas.limit_base if self.gas.limit_base is not None else '[ESTIMATE]'}"
        )
        logger.info(f"  Percent Increase: {self.gas.percent_increase}%")

        logger.info("Monitoring Settings:")
        logger.info(f"  Poll Interval: {self.monitoring.poll_interval} seconds")
        logger.info(f"  Request Timeout: {self.monitoring.request_timeout} seconds")

        logger.info(f"  Signer Key: {'[CONFIGURED]' if self.local_private_key else '[NOT SET]'}")
        logger.info("=" * 60)
