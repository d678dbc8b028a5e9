from .errors import (
    BlockExplorerError,
    ConfigurationError,
    InvalidAddressError,
    NotAnExecutorError,
    NotATimelockError,
    RevocationError,
    TimelockRolesError,
)
from .scanner import (
    RevocationPlan,
    RoleEvent,
    RoleScanner,
    Timelock,
    plan_revocation,
    replay_role_events,
    select_executors_to_remove,
)
from .utils import BlockExplorer, RateLimiter, get_api_key

__all__ = [
    "BlockExplorer",
    "BlockExplorerError",
    "ConfigurationError",
    "InvalidAddressError",
    "NotAnExecutorError",
    "NotATimelockError",
    "RateLimiter",
    "RevocationError",
    "RevocationPlan",
    "RoleEvent",
    "RoleScanner",
    "Timelock",
    "TimelockRolesError",
    "get_api_key",
    "plan_revocation",
    "replay_role_events",
    "select_executors_to_remove",
]
