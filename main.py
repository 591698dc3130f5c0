#!/usr/bin/env python3
"""Entry point for the Orbit rollup deployer.

This module provides the command line interface for preparing and sending
rollup deployments and for reading back what a deployment produced.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from web3 import Web3

from orbit_deployer.config import DeployerConfig
from orbit_deployer.deployer import RollupDeployer
from orbit_deployer.errors import OrbitDeployerError


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Orbit Deployer - Deploy Arbitrum Orbit rollups and inspect deployments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  PARENT_RPC_URL              - RPC endpoint for the parent chain
  CHILD_RPC_URL               - RPC endpoint for the child chain (track-retryables)
  ROLLUP_CREATOR_ADDRESS      - RollupCreator override
  CHAIN_ID                    - Chain id of the rollup to deploy
  CHAIN_OWNER                 - Rollup owner (default: deployer account)
  BATCH_POSTER                - Batch poster address
  VALIDATORS                  - Comma separated validator addresses
  NATIVE_TOKEN                - Custom fee token (AnyTrust only)
  DATA_AVAILABILITY_COMMITTEE - Deploy an AnyTrust chain (default: false)
  DEPLOY_FACTORIES_TO_L2      - Deploy factories to the child chain (default: false)
  GAS_LIMIT_BASE              - Gas limit instead of the estimate
  GAS_LIMIT_PERCENT_INCREASE  - Percentage added to the gas limit (default: 0)
  POLL_INTERVAL               - Retryable polling interval (default: 5)
  REQUEST_TIMEOUT             - RPC request timeout (default: 30)
  LOCAL_PRIVATE_KEY           - Key signing the deployment (required for deploy)
  LOG_LEVEL                   - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    prepare = subparsers.add_parser("prepare", help="Print the unsigned deployment transaction")
    prepare.add_argument("--account", help="Sender address (default: LOCAL_PRIVATE_KEY account)")

    subparsers.add_parser("deploy", help="Sign and send the deployment transaction")

    fetch_tx_hash = subparsers.add_parser(
        "fetch-tx-hash", help="Find the transaction that deployed a rollup"
    )
    fetch_tx_hash.add_argument("rollup", help="Rollup contract address")

    core_contracts = subparsers.add_parser(
        "core-contracts", help="Print the core contracts of a deployed rollup"
    )
    core_contracts.add_argument("rollup", help="Rollup contract address")

    track = subparsers.add_parser(
        "track-retryables", help="Wait for the retryable ticket of a parent chain transaction"
    )
    track.add_argument("transaction_hash", help="Parent chain transaction hash")

    return parser


async def execute(args: argparse.Namespace) -> object:
    """Run a sub-command and return its JSON-serializable result."""
    config: DeployerConfig = DeployerConfig.from_env(
        require_deployment=args.command in ("prepare", "deploy"),
        require_signer=args.command == "deploy",
    )
    logger.info("Configuration loaded successfully")

    deployer: RollupDeployer = RollupDeployer(config)

    match args.command:
        case "prepare":
            request = await deployer.prepare(account=args.account)
            return request.to_dict()
        case "deploy":
            result = await deployer.deploy()
            return {
                "transactionHash": result.transaction_hash,
                "coreContracts": result.core_contracts.to_dict(),
            }
        case "fetch-tx-hash":
            return {"transactionHash": await deployer.fetch_transaction_hash(args.rollup)}
        case "core-contracts":
            return (await deployer.fetch_core_contracts(args.rollup)).to_dict()
        case "track-retryables":
            receipts = await deployer.wait_for_retryables(args.transaction_hash)
            return [json.loads(Web3.to_json(receipt)) for receipt in receipts]

    raise ValueError(f"Unknown command: {args.command}")


async def main() -> None:
    """Main entry point for the Orbit deployer.

    Parses arguments, loads configuration from environment and runs the
    requested sub-command, printing its result as JSON.

    Raises:
        SystemExit: On configuration or runtime errors
    """
    args: argparse.Namespace = build_parser().parse_args()

    # Set up logging with specified level
    setup_logging(args.log_level)
    logger.info(f"=== Orbit Deployer: {args.command} ===")

    try:
        result = await execute(args)
        print(json.dumps(result, indent=2))

    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables (see --help)")
        sys.exit(1)

    except OrbitDeployerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(2)

    except KeyboardInterrupt:
        logger.info("\nReceived interrupt signal, shutting down gracefully...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    # Run the main async function
    run()
