import json
from pathlib import Path
from typing import Any

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.contract.contract import ContractEvent
from web3.types import EventData, LogReceipt


class ContractUtility:
    """
    Utility for ABI loading and contract call encoding.

    Encoding and log decoding go through a provider-less Web3 codec and never
    touch the network. Calls that need chain state take the caller's AsyncWeb3
    client explicitly.
    """

    CONTRACTS_DIR: Path = Path(__file__).parent.parent / "contracts"

    def __init__(self, contracts_dir: Path | None = None) -> None:
        """
        Initialize the ContractUtility.

        Args:
            contracts_dir: Directory holding ``<ContractName>.json`` ABI files
                (defaults to the ABIs shipped with the package)
        """
        self.contracts_dir = contracts_dir or self.CONTRACTS_DIR
        self.codec = Web3()
        self._abis: dict[str, list[dict[str, Any]]] = {}

    def get_contract_abi(self, contract_name: str) -> list[dict[str, Any]]:
        """Fetches ABI of the given contract from the contracts folder.

        Args:
            contract_name: Name of the contract (without .json extension)

        Returns:
            List of ABI dictionaries for the contract

        Raises:
            FileNotFoundError: If the contract file doesn't exist
            json.JSONDecodeError: If the contract file is invalid JSON
        """
        if contract_name not in self._abis:
            contract_path: Path = (self.contracts_dir / f"{contract_name}.json").resolve()

            with contract_path.open() as file:
                contract_data: dict[str, Any] = json.load(file)

            self._abis[contract_name] = contract_data["abi"]

        return self._abis[contract_name]

    def encode_call(self, contract_name: str, function_name: str, args: list[Any]) -> str:
        """ABI-encode a function call, returning 0x-prefixed call data."""
        contract = self.codec.eth.contract(abi=self.get_contract_abi(contract_name))
        return contract.encode_abi(function_name, args=args)

    def event(self, contract_name: str, event_name: str) -> ContractEvent:
        contract = self.codec.eth.contract(abi=self.get_contract_abi(contract_name))
        if not hasattr(contract.events, event_name):
            raise ValueError(f"Event {event_name} not found in {contract_name} ABI")
        return getattr(contract.events, event_name)()

    def event_topic(self, contract_name: str, event_name: str) -> HexBytes:
        """Topic 0 of the given event."""
        return HexBytes(self.event(contract_name, event_name).topic)

    def decode_logs(
        self,
        contract_name: str,
        event_name: str,
        logs: list[LogReceipt],
    ) -> list[EventData]:
        """Decode every log whose first topic matches the event, skipping the rest."""
        event_obj = self.event(contract_name, event_name)
        topic = HexBytes(event_obj.topic)
        return [
            event_obj.process_log(log)
            for log in logs
            if log.get("topics") and HexBytes(log["topics"][0]) == topic
        ]

    async def fetch_decimals(self, w3: AsyncWeb3, token: str) -> int:
        """Read ``decimals()`` from an ERC-20 token contract."""
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(token),
            abi=self.get_contract_abi("ERC20"),
        )
        return int(await contract.functions.decimals().call())
