from typing import Dict, List, Optional, Any
import datetime


def generate_roles_table(roles: Dict[str, List[str]]) -> str:
    """Generate the role holders table.

    Args:
        roles (Dict[str, List[str]]): role name -> current holders

    Returns:
        str: Markdown table of role holders
    """
    content = []
    content.append("## Roles")
    content.append("\n| Role | Address |")
    content.append("|------|---------|")

    for role, holders in roles.items():
        if not holders:
            content.append(f"| {role} | none found |")
        for address in holders:
            content.append(f"| {role} | {address} |")

    return "\n".join(content)


def generate_revocation_section(plan: Dict[str, Any]) -> str:
    content = []
    content.append("\n## Executor revocation")
    content.append("\n| Executor to remove |")
    content.append("|--------------------|")
    for address in plan["to_remove"]:
        content.append(f"| {address} |")

    content.append(f"\nMinimum delay: {plan['delay']} seconds\n")
    content.append("scheduleBatch call data:\n")
    content.append(f"```\n{plan['schedule_batch_data']}\n```\n")
    content.append("executeBatch call data:\n")
    content.append(f"```\n{plan['execute_batch_data']}\n```")
    return "\n".join(content)


def generate_full_markdown(
    address: str,
    network: str,
    roles: Dict[str, List[str]],
    plan: Optional[Dict[str, Any]] = None,
) -> str:
    """Generate a full markdown report for one timelock.

    Args:
        address (str): Timelock address
        network (str): Network the timelock lives on
        roles (Dict[str, List[str]]): role name -> current holders
        plan (Dict[str, Any], optional): RevocationPlan.to_dict() of a revoke action

    Returns:
        str: Generated markdown content
    """
    content = []

    content.append("# Timelock Roles Report")
    content.append(
        f"\nGenerated on: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
    )
    content.append(f"Timelock: {address} ({network})\n")

    content.append(generate_roles_table(roles))
    if plan:
        content.append(generate_revocation_section(plan))

    return "\n".join(content)
