from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple, Union

from web3 import Web3

from ..errors import RoleEventError
from ..utils.block_explorer import BlockExplorer
from ..utils.logger import setup_logger
from .timelock import ROLE_IDS, Timelock

logger = setup_logger(__name__)

# Event signatures
ROLE_GRANTED_EVENT = "RoleGranted(bytes32,address,address)"
ROLE_REVOKED_EVENT = "RoleRevoked(bytes32,address,address)"


class EventType(Enum):
    GRANTED = "RoleGranted"
    REVOKED = "RoleRevoked"


EVENT_SIGNATURES = {
    EventType.GRANTED: Web3.to_hex(Web3.keccak(text=ROLE_GRANTED_EVENT)),
    EventType.REVOKED: Web3.to_hex(Web3.keccak(text=ROLE_REVOKED_EVENT)),
}


def _parse_quantity(value: Union[str, int]) -> int:
    # the explorer renders zero as a bare "0x"
    if isinstance(value, int):
        return value
    if value in ("", "0x"):
        return 0
    if value.startswith("0x"):
        return int(value, 16)
    return int(value)


@dataclass(frozen=True)
class RoleEvent:
    type: EventType
    account: str
    block_number: int
    transaction_index: int
    log_index: int

    @property
    def position(self) -> Tuple[int, int, int]:
        """Chain order of the event: (block, transaction index, log index)."""
        return (self.block_number, self.transaction_index, self.log_index)

    @classmethod
    def from_log(cls, log: Dict[str, Any], event_type: EventType) -> "RoleEvent":
        topics = log.get("topics") or []
        if len(topics) < 3:
            raise RoleEventError(f"role event log without account topic: {log}")
        try:
            return cls(
                type=event_type,
                account=Web3.to_checksum_address("0x" + topics[2][-40:]),
                block_number=_parse_quantity(log["blockNumber"]),
                transaction_index=_parse_quantity(log["transactionIndex"]),
                log_index=_parse_quantity(log["logIndex"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RoleEventError(f"malformed role event log {log}: {e!r}") from e


def _check_unique_positions(events: Iterable[RoleEvent]) -> List[RoleEvent]:
    """Drop exact duplicates, reject two different events at one log position."""
    seen: Dict[Tuple[int, int, int], RoleEvent] = {}
    for event in events:
        other = seen.get(event.position)
        if other is None:
            seen[event.position] = event
        elif other != event:
            raise RoleEventError(
                f"conflicting role events at block {event.block_number}, "
                f"tx {event.transaction_index}, log {event.log_index}: {other} / {event}"
            )
    return list(seen.values())


def replay_role_events(
    granted: Iterable[RoleEvent], revoked: Iterable[RoleEvent]
) -> List[str]:
    """Replay grant/revoke events in chain order into the current holders.

    The input order is irrelevant: events are sorted by
    (block_number, transaction_index, log_index) before being applied, a grant
    adds the account and a revoke removes it.

    Returns:
        List[str]: current holders, in the order they gained the role.
    """
    events = _check_unique_positions([*granted, *revoked])
    events.sort(key=lambda e: e.position)

    accounts: Dict[str, None] = {}
    for event in events:
        if event.type is EventType.GRANTED:
            accounts.setdefault(event.account, None)
        elif event.type is EventType.REVOKED:
            accounts.pop(event.account, None)
    return list(accounts)


class RoleScanner:
    """Rebuilds the executor, proposer and admin sets of a timelock from its logs."""

    def __init__(self, timelock: Timelock, explorer: BlockExplorer):
        self.timelock = timelock
        self.explorer = explorer

    def fetch_events(self, role_id: str, event_type: EventType) -> List[RoleEvent]:
        logs = self.explorer.get_logs(
            self.timelock.address, [EVENT_SIGNATURES[event_type], role_id]
        )
        return [RoleEvent.from_log(log, event_type) for log in logs]

    def get_roles(self) -> Dict[str, List[str]]:
        """Fetch the full history of every role and replay it.

        The six queries (three roles, granted and revoked) run concurrently;
        the explorer's rate limiter keeps them under the API limit. Any
        failure aborts the scan.

        Returns:
            Dict[str, List[str]]: role name -> current holders
        """
        queries = [
            (role_id, event_type)
            for role_id in ROLE_IDS
            for event_type in (EventType.GRANTED, EventType.REVOKED)
        ]
        with ThreadPoolExecutor(max_workers=len(queries)) as pool:
            futures = {
                query: pool.submit(self.fetch_events, *query) for query in queries
            }
            events = {query: future.result() for query, future in futures.items()}

        roles = {}
        for role_id, name in ROLE_IDS.items():
            roles[name] = replay_role_events(
                events[(role_id, EventType.GRANTED)],
                events[(role_id, EventType.REVOKED)],
            )
            logger.info(f"{name}: {len(roles[name])} holder(s)")
        return roles
