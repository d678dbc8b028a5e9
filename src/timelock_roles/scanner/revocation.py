from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from web3 import Web3

from ..errors import InvalidAddressError, NotAnExecutorError, RevocationError
from ..utils.logger import setup_logger
from .timelock import HASH_ZERO, TIMELOCK_ADMIN_ROLE, Timelock

logger = setup_logger(__name__)


@dataclass
class RevocationPlan:
    """A scheduleBatch/executeBatch pair revoking EXECUTOR_ROLE from `to_remove`.

    Both call data strings share the same (targets, values, payloads,
    predecessor, salt) tuple; only scheduleBatch carries the delay.
    """

    to_remove: List[str]
    targets: List[str]
    values: List[int]
    payloads: List[str]
    predecessor: str
    salt: str
    delay: int
    schedule_batch_data: str
    execute_batch_data: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def format(self) -> str:
        return "\n".join(
            [
                "To remove executors:",
                *[f" {address}" for address in self.to_remove],
                "",
                "Schedule the following batch proposal by calling scheduleBatch on your timelock with the parameters:",
                "",
                f" targets={','.join(self.targets)}",
                f" values={','.join(str(v) for v in self.values)}",
                f" payloads={','.join(self.payloads)}",
                f" predecessor={self.predecessor}",
                f" salt={self.salt}",
                f" delay={self.delay}",
                "",
                "which is the same as sending a transaction with the following data:",
                "",
                f" {self.schedule_batch_data}",
                "",
                f"After the delay of {self.delay} seconds, you can then call executeBatch with the same parameters as above, or using the following tx data:",
                "",
                f" {self.execute_batch_data}",
            ]
        )


def select_executors_to_remove(
    roles: Dict[str, List[str]], raw_to_remove: Optional[str] = None
) -> List[str]:
    """Pick the executors a revoke action should target.

    Args:
        roles: current role holders, as returned by RoleScanner.get_roles
        raw_to_remove: comma separated addresses; when empty, every executor
            that is not also a proposer is picked

    Returns:
        List[str]: checksummed addresses, possibly empty

    Raises:
        InvalidAddressError: an entry of raw_to_remove is not an address
        NotAnExecutorError: an entry of raw_to_remove is not a current executor
    """
    executors = roles.get("executor", [])

    if not raw_to_remove:
        proposers = set(roles.get("proposer", []))
        return [e for e in executors if e not in proposers]

    to_remove: List[str] = []
    for entry in raw_to_remove.split(","):
        addr = entry.strip()
        if not Web3.is_address(addr):
            raise InvalidAddressError(f"Invalid address to remove: {addr}")
        addr = Web3.to_checksum_address(addr)
        if addr not in executors:
            raise NotAnExecutorError(
                f"Address {addr} is not an executor of the timelock"
            )
        if addr not in to_remove:
            to_remove.append(addr)
    return to_remove


def plan_revocation(
    timelock: Timelock,
    roles: Dict[str, List[str]],
    raw_to_remove: Optional[str] = None,
) -> Optional[RevocationPlan]:
    """Draft the batch that revokes stale executors, or None if there are none.

    Nothing is encoded unless every safety rule holds: the timelock keeps at
    least one executor and the contract confirms it holds its own admin role.

    Raises:
        RevocationError: when the selection is unsafe or the timelock is not
            self-governed (see also select_executors_to_remove)
    """
    to_remove = select_executors_to_remove(roles, raw_to_remove)
    if not to_remove:
        logger.info("No executors found to remove.")
        return None

    executors = roles.get("executor", [])
    if set(executors) <= set(to_remove):
        raise RevocationError(
            "Refusing to remove all executors from the timelock since this may brick the contract"
        )

    if not timelock.has_role(TIMELOCK_ADMIN_ROLE, timelock.address):
        raise RevocationError(f"Timelock {timelock.address} is not self-governed")

    delay = timelock.get_min_delay()
    targets = [timelock.address for _ in to_remove]
    values = [0 for _ in to_remove]
    payloads = [timelock.encode_revoke_role(addr) for addr in to_remove]
    predecessor = HASH_ZERO
    salt = HASH_ZERO

    plan = RevocationPlan(
        to_remove=to_remove,
        targets=targets,
        values=values,
        payloads=payloads,
        predecessor=predecessor,
        salt=salt,
        delay=delay,
        schedule_batch_data=timelock.encode_schedule_batch(
            targets, values, payloads, predecessor, salt, delay
        ),
        execute_batch_data=timelock.encode_execute_batch(
            targets, values, payloads, predecessor, salt
        ),
    )
    logger.info(f"Drafted revocation of {len(to_remove)} executor(s)")
    return plan
