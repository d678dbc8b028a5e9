from typing import Dict, List, Optional, Tuple

import pytest
from eth_abi import decode, encode
from web3 import Web3

from timelock_roles.errors import BlockExplorerError
from timelock_roles.scanner.roles import EVENT_SIGNATURES, EventType
from timelock_roles.scanner.timelock import TIMELOCK_ADMIN_ROLE

TIMELOCK = Web3.to_checksum_address("0x" + "1f" * 20)
ALICE = Web3.to_checksum_address("0x" + "a1" * 20)
BOB = Web3.to_checksum_address("0x" + "b0" * 20)
CAROL = Web3.to_checksum_address("0x" + "c4" * 20)
DEPLOYER = Web3.to_checksum_address("0x" + "de" * 20)

MIN_DELAY = 172800


def selector(signature: str) -> str:
    return Web3.to_hex(Web3.keccak(text=signature)[:4])


SELECTORS = {
    "TIMELOCK_ADMIN_ROLE": selector("TIMELOCK_ADMIN_ROLE()"),
    "hasRole": selector("hasRole(bytes32,address)"),
    "getMinDelay": selector("getMinDelay()"),
}


def _encode(types: List[str], values: list) -> str:
    return Web3.to_hex(encode(types, values))


def make_log(
    event_type: EventType,
    role: str,
    account: str,
    block: int,
    tx_index: int = 0,
    log_index: int = 0,
) -> Dict:
    """A getLogs record shaped like the explorer's (hex quantities, zero as "0x")."""

    def quantity(value: int) -> str:
        return hex(value) if value else "0x"

    return {
        "address": TIMELOCK.lower(),
        "topics": [
            EVENT_SIGNATURES[event_type],
            role,
            "0x" + "00" * 12 + account[2:].lower(),
            "0x" + "00" * 12 + DEPLOYER[2:].lower(),
        ],
        "data": "0x",
        "blockNumber": quantity(block),
        "timeStamp": "0x64",
        "transactionHash": "0x" + "ab" * 32,
        "transactionIndex": quantity(tx_index),
        "logIndex": quantity(log_index),
    }


class FakeExplorer:
    """Stands in for BlockExplorer: canned logs and a tiny TimelockController."""

    def __init__(
        self,
        chain_name: str = "mainnet",
        admin_role: Optional[str] = TIMELOCK_ADMIN_ROLE,
        min_delay: int = MIN_DELAY,
        self_governed: bool = True,
    ):
        self.chain_name = chain_name
        self.admin_role = admin_role
        self.min_delay = min_delay
        self.role_holders = set()
        if self_governed:
            self.role_holders.add((TIMELOCK_ADMIN_ROLE, TIMELOCK))
        self.logs: Dict[Tuple[str, str], List[Dict]] = {}
        self.log_queries: List[Tuple[str, Tuple]] = []
        self.eth_calls: List[str] = []

    def add_log(self, event_type: EventType, role: str, account: str, block: int, tx_index: int = 0, log_index: int = 0):
        key = (EVENT_SIGNATURES[event_type], role)
        self.logs.setdefault(key, []).append(
            make_log(event_type, role, account, block, tx_index, log_index)
        )

    def get_logs(self, address, topics, from_block=0, to_block="latest"):
        self.log_queries.append((address, tuple(topics)))
        return list(self.logs.get(tuple(topics), []))

    def eth_call(self, to, data, tag="latest"):
        self.eth_calls.append(data)
        fn, args = data[:10], Web3.to_bytes(hexstr="0x" + data[10:])
        if fn == SELECTORS["TIMELOCK_ADMIN_ROLE"]:
            if self.admin_role is None:
                return "0x"
            return _encode(["bytes32"], [Web3.to_bytes(hexstr=self.admin_role)])
        if fn == SELECTORS["hasRole"]:
            role, account = decode(["bytes32", "address"], args)
            held = (Web3.to_hex(role), Web3.to_checksum_address(account)) in self.role_holders
            return _encode(["bool"], [held])
        if fn == SELECTORS["getMinDelay"]:
            return _encode(["uint256"], [self.min_delay])
        raise BlockExplorerError("0", "execution reverted")


@pytest.fixture
def explorer() -> FakeExplorer:
    return FakeExplorer()


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str = ""):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_get(monkeypatch):
    """Patch requests.get; set `.responses` to a list consumed in order."""
    import timelock_roles.utils.block_explorer as block_explorer

    class _FakeGet:
        def __init__(self):
            self.responses: List = []
            self.calls: List[Dict] = []

        def __call__(self, url, params=None, timeout=None):
            self.calls.append({"url": url, "params": dict(params), "timeout": timeout})
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

    fake = _FakeGet()
    monkeypatch.setattr(block_explorer.requests, "get", fake)
    return fake
