from .revocation import RevocationPlan, plan_revocation, select_executors_to_remove
from .roles import EventType, RoleEvent, RoleScanner, replay_role_events
from .timelock import (
    EXECUTOR_ROLE,
    PROPOSER_ROLE,
    ROLE_IDS,
    TIMELOCK_ADMIN_ROLE,
    Timelock,
)
