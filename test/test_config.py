#!/usr/bin/env python3
"""Tests for the configuration module."""

import json
import logging
import os
from unittest.mock import patch

import pytest

from orbit_deployer.config import (
    ChildChainConfig,
    DeployerConfig,
    GasConfig,
    MonitoringConfig,
    ParentChainConfig,
    RollupDeploymentConfig,
)

BATCH_POSTER = "0x2222222222222222222222222222222222222222"
VALIDATOR = "0x3333333333333333333333333333333333333333"
DEPLOYER = "0x5555555555555555555555555555555555555555"
PRIVATE_KEY = "0x" + "11" * 32


class TestParentChainConfig:
    """Tests for ParentChainConfig."""

    def test_valid_config(self):
        config = ParentChainConfig(rpc_url="https://sepolia-rollup.arbitrum.io/rpc")

        assert config.rollup_creator_address is None

    def test_checksum_rollup_creator(self):
        config = ParentChainConfig(
            rpc_url="http://localhost:8545",
            rollup_creator_address="0x85bfe05492afc3d04ff3b2ca6771acf6f853d90d",
        )

        assert config.rollup_creator_address == "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"

    def test_invalid_rpc_url_scheme(self):
        with pytest.raises(ValueError, match="Invalid RPC URL scheme"):
            ParentChainConfig(rpc_url="ftp://invalid.scheme")

    def test_missing_rpc_url(self):
        with pytest.raises(ValueError, match="RPC URL is required"):
            ParentChainConfig(rpc_url="")

    def test_child_rpc_optional(self):
        assert ChildChainConfig().rpc_url is None
        with pytest.raises(ValueError, match="CHILD_RPC_URL"):
            ChildChainConfig(rpc_url="ws://localhost:8548")


class TestRollupDeploymentConfig:
    """Tests for RollupDeploymentConfig."""

    def test_requires_validators(self):
        with pytest.raises(ValueError, match="At least one validator"):
            RollupDeploymentConfig(chain_id=1, batch_poster=BATCH_POSTER, validators=())

    def test_invalid_batch_poster(self):
        with pytest.raises(ValueError, match="Invalid batch poster"):
            RollupDeploymentConfig(chain_id=1, batch_poster="0x12", validators=(VALIDATOR,))

    def test_deployer_is_default_owner(self):
        config = RollupDeploymentConfig(chain_id=98765, batch_poster=BATCH_POSTER, validators=(VALIDATOR,))

        params = config.to_deployment_params(DEPLOYER)

        assert params.config.owner == DEPLOYER
        chain_config = json.loads(params.config.chain_config)
        assert chain_config["chainId"] == 98765
        assert chain_config["arbitrum"]["InitialChainOwner"] == DEPLOYER

    def test_any_trust_flag_reaches_chain_config(self):
        config = RollupDeploymentConfig(
            chain_id=98765,
            batch_poster=BATCH_POSTER,
            validators=(VALIDATOR,),
            data_availability_committee=True,
        )

        chain_config = json.loads(config.to_deployment_params(DEPLOYER).config.chain_config)

        assert chain_config["arbitrum"]["DataAvailabilityCommittee"] is True


class TestGasAndMonitoringConfig:
    """Tests for GasConfig and MonitoringConfig."""

    def test_no_overrides_by_default(self):
        assert GasConfig().to_overrides() is None

    def test_overrides(self):
        overrides = GasConfig(limit_base=1_000_000, percent_increase=10).to_overrides()

        assert overrides.base == 1_000_000
        assert overrides.percent_increase == 10

    def test_invalid_poll_interval(self):
        with pytest.raises(ValueError, match="Poll interval must be positive"):
            MonitoringConfig(poll_interval=0)

    def test_invalid_request_timeout(self):
        with pytest.raises(ValueError, match="Request timeout too long"):
            MonitoringConfig(request_timeout=500)


class TestDeployerConfigFromEnv:
    """Tests for DeployerConfig.from_env."""

    def test_minimal_env(self):
        with patch.dict(os.environ, {"PARENT_RPC_URL": "http://localhost:8545"}, clear=True):
            config = DeployerConfig.from_env()

        assert config.deployment is None
        assert config.local_private_key is None
        assert config.monitoring.poll_interval == 5
        assert config.monitoring.request_timeout == 30

    def test_missing_parent_rpc(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="PARENT_RPC_URL"):
                DeployerConfig.from_env()

    def test_full_env(self):
        env = {
            "PARENT_RPC_URL": "http://localhost:8545",
            "CHILD_RPC_URL": "http://localhost:8547",
            "CHAIN_ID": "98765",
            "BATCH_POSTER": BATCH_POSTER,
            "VALIDATORS": f"{VALIDATOR}, {DEPLOYER}",
            "DATA_AVAILABILITY_COMMITTEE": "true",
            "GAS_LIMIT_BASE": "5000000",
            "GAS_LIMIT_PERCENT_INCREASE": "20",
            "POLL_INTERVAL": "2",
            "LOCAL_PRIVATE_KEY": PRIVATE_KEY,
        }
        with patch.dict(os.environ, env, clear=True):
            config = DeployerConfig.from_env(require_deployment=True, require_signer=True)

        assert config.deployment.chain_id == 98765
        assert config.deployment.validators == (VALIDATOR, DEPLOYER)
        assert config.deployment.data_availability_committee is True
        assert config.deployment.deploy_factories_to_l2 is False
        assert config.gas.limit_base == 5_000_000
        assert config.gas.percent_increase == 20
        assert config.monitoring.poll_interval == 2
        assert config.child_chain.rpc_url == "http://localhost:8547"

    def test_deployment_required(self):
        with patch.dict(os.environ, {"PARENT_RPC_URL": "http://localhost:8545"}, clear=True):
            with pytest.raises(ValueError, match="CHAIN_ID"):
                DeployerConfig.from_env(require_deployment=True)

    def test_signer_required(self):
        with patch.dict(os.environ, {"PARENT_RPC_URL": "http://localhost:8545"}, clear=True):
            with pytest.raises(ValueError, match="LOCAL_PRIVATE_KEY"):
                DeployerConfig.from_env(require_signer=True)

    def test_invalid_boolean(self):
        env = {
            "PARENT_RPC_URL": "http://localhost:8545",
            "CHAIN_ID": "1",
            "BATCH_POSTER": BATCH_POSTER,
            "VALIDATORS": VALIDATOR,
            "DEPLOY_FACTORIES_TO_L2": "maybe",
        }
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError, match="DEPLOY_FACTORIES_TO_L2"):
                DeployerConfig.from_env()

    def test_invalid_integer(self):
        env = {"PARENT_RPC_URL": "http://localhost:8545", "POLL_INTERVAL": "soon"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError, match="POLL_INTERVAL must be an integer"):
                DeployerConfig.from_env()

    def test_invalid_private_key(self):
        with pytest.raises(ValueError, match="Invalid private key length"):
            DeployerConfig(
                parent_chain=ParentChainConfig(rpc_url="http://localhost:8545"),
                local_private_key="0x1234",
            )

    def test_log_config_masks_key(self, caplog):
        config = DeployerConfig(
            parent_chain=ParentChainConfig(rpc_url="http://localhost:8545"),
            local_private_key=PRIVATE_KEY,
        )

        with caplog.at_level(logging.INFO):
            config.log_config()

        assert "[CONFIGURED]" in caplog.text
        assert PRIVATE_KEY not in caplog.text
