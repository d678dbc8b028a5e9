import json
from pathlib import Path
from typing import Any, List, Sequence

from eth_abi.exceptions import DecodingError
from web3 import Web3

from ..errors import BlockExplorerError, ConfigurationError, NotATimelockError
from ..utils.block_explorer import BlockExplorer
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

EXECUTOR_ROLE = "0xd8aa0f3194971a2a116679f7c2090f6939c8d4e01a2a8d7e41d55e5351469e63"
PROPOSER_ROLE = "0xb09aa5aeb3702cfd50b6b62bc4532604938f21248a27a1d5ca736082b6819cc1"
TIMELOCK_ADMIN_ROLE = "0x5f58e3a2316349923ce3780f8d587db2d72378aed66a8261c916544fa6846ca5"

# role id -> name used in reports, in display order
ROLE_IDS = {
    EXECUTOR_ROLE: "executor",
    PROPOSER_ROLE: "proposer",
    TIMELOCK_ADMIN_ROLE: "timelock_admin",
}

HASH_ZERO = "0x" + "00" * 32

with open(Path(__file__).parent / "timelock_abi.json", "r") as f:
    TIMELOCK_ABI = json.load(f)


def _to_bytes32(value: str) -> bytes:
    return Web3.to_bytes(hexstr=value)


class Timelock:
    """A TimelockController read through the block explorer.

    Calls are ABI-encoded locally with web3 and sent as eth_call through the
    explorer proxy, so no RPC endpoint is required.
    """

    def __init__(self, address: str, explorer: BlockExplorer):
        if not Web3.is_address(address):
            raise ConfigurationError(f"Invalid timelock address: {address}")
        self.address = Web3.to_checksum_address(address)
        self.explorer = explorer
        self.w3 = Web3()
        self.contract = self.w3.eth.contract(address=self.address, abi=TIMELOCK_ABI)

    @property
    def network(self) -> str:
        return self.explorer.chain_name

    @classmethod
    def connect(cls, address: str, explorer: BlockExplorer) -> "Timelock":
        """Build a Timelock and check the contract really is one.

        Raises:
            NotATimelockError: if TIMELOCK_ADMIN_ROLE() is missing or has an
                unexpected value.
        """
        timelock = cls(address, explorer)
        try:
            admin_role = timelock._call("TIMELOCK_ADMIN_ROLE", ["bytes32"])[0]
        except BlockExplorerError as e:
            logger.debug(f"TIMELOCK_ADMIN_ROLE() call failed: {e}")
            admin_role = None

        if admin_role != _to_bytes32(TIMELOCK_ADMIN_ROLE):
            raise NotATimelockError(
                f"Contract at {timelock.address} does not appear to be a TimelockController instance"
            )
        logger.info(f"Connected to timelock {timelock.address} on {timelock.network}")
        return timelock

    def _call(self, fn_name: str, output_types: List[str], *args: Any) -> tuple:
        data = self.contract.functions[fn_name](*args)._encode_transaction_data()
        raw = self.explorer.eth_call(self.address, data)
        try:
            return self.w3.codec.decode(output_types, Web3.to_bytes(hexstr=raw))
        except (DecodingError, ValueError) as e:
            raise BlockExplorerError(
                None, f"undecodable {fn_name}() answer {raw!r}: {e}"
            ) from e

    def has_role(self, role: str, account: str) -> bool:
        return self._call(
            "hasRole", ["bool"], _to_bytes32(role), Web3.to_checksum_address(account)
        )[0]

    def get_min_delay(self) -> int:
        return self._call("getMinDelay", ["uint256"])[0]

    def encode_revoke_role(self, account: str, role: str = EXECUTOR_ROLE) -> str:
        return self.contract.functions.revokeRole(
            _to_bytes32(role), Web3.to_checksum_address(account)
        )._encode_transaction_data()

    def encode_schedule_batch(
        self,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[str],
        predecessor: str,
        salt: str,
        delay: int,
    ) -> str:
        return self.contract.functions.scheduleBatch(
            list(targets),
            list(values),
            [Web3.to_bytes(hexstr=p) for p in payloads],
            _to_bytes32(predecessor),
            _to_bytes32(salt),
            delay,
        )._encode_transaction_data()

    def encode_execute_batch(
        self,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[str],
        predecessor: str,
        salt: str,
    ) -> str:
        return self.contract.functions.executeBatch(
            list(targets),
            list(values),
            [Web3.to_bytes(hexstr=p) for p in payloads],
            _to_bytes32(predecessor),
            _to_bytes32(salt),
        )._encode_transaction_data()
