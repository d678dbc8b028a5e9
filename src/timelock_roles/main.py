import argparse
import json
import os
import sys
from typing import Dict, List, Optional, Union

from dotenv import load_dotenv
from web3 import Web3

from .errors import TimelockRolesError
from .scanner.revocation import RevocationPlan, plan_revocation
from .scanner.roles import RoleScanner
from .scanner.timelock import Timelock
from .utils.api_key import get_api_key
from .utils.block_explorer import BlockExplorer
from .utils.logger import setup_logger
from .utils.markdown_generator import generate_full_markdown
from .utils.rate_limiter import RateLimiter

logger = setup_logger(__name__)

SUPPORTED_NETWORKS = ["mainnet", "bnb", "binance", "matic"]
ACTIONS = ["view", "revoke"]


def _address(value: str) -> str:
    if not Web3.is_address(value):
        raise argparse.ArgumentTypeError(f"invalid address: {value}")
    return Web3.to_checksum_address(value)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="timelock-roles",
        description="View the roles of a TimelockController or draft the revocation of stale executors",
        epilog=(
            f"action: {','.join(ACTIONS)}\n"
            f"network: {','.join(SUPPORTED_NETWORKS)}\n"
            "Provide the block explorer api key in ETHERSCAN_API_KEY (env or .env)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("action", choices=ACTIONS, help="What to do with the timelock")
    parser.add_argument(
        "network", type=str.lower, choices=SUPPORTED_NETWORKS, help="Network name"
    )
    parser.add_argument("address", type=_address, help="Timelock address")
    parser.add_argument(
        "to_remove",
        nargs="?",
        default=None,
        help="Comma separated executors to revoke (revoke only). Defaults to executors that are not proposers",
    )
    parser.add_argument(
        "--export-dir",
        default=None,
        help="Also write roles.json, roles.md (and revocation.json) to this directory",
    )
    return parser.parse_args(argv)


def view_roles(address: str, roles: Dict[str, List[str]]) -> None:
    """Prints the accounts holding each role on a timelock."""
    print(f"Roles on {address}:")
    for role, holders in roles.items():
        print(f"{role}s:")
        if not holders:
            print(" none found")
        else:
            print("\n".join(f"- {holder}" for holder in holders))


def export_results(
    export_dir: str,
    timelock: Timelock,
    roles: Dict[str, List[str]],
    plan: Optional[RevocationPlan] = None,
) -> None:
    os.makedirs(export_dir, exist_ok=True)
    plan_dict = plan.to_dict() if plan else None

    with open(os.path.join(export_dir, "roles.json"), "w") as f:
        json.dump(roles, f, indent=4)
    if plan_dict:
        with open(os.path.join(export_dir, "revocation.json"), "w") as f:
            json.dump(plan_dict, f, indent=4)

    markdown_content = generate_full_markdown(
        timelock.address, timelock.network, roles, plan_dict
    )
    with open(os.path.join(export_dir, "roles.md"), "w") as f:
        f.write(markdown_content)
    logger.info(f"Results written to {export_dir}")


def run(
    action: str,
    network: str,
    address: str,
    raw_to_remove: Optional[str] = None,
    export_dir: Optional[str] = None,
    explorer: Optional[BlockExplorer] = None,
) -> Union[Dict[str, List[str]], Optional[RevocationPlan]]:
    """Run one action against a timelock.

    Returns:
        the role holders for `view`, the RevocationPlan (or None when there is
        nothing to revoke) for `revoke`
    """
    if explorer is None:
        explorer = BlockExplorer(get_api_key(network), network, RateLimiter())

    timelock = Timelock.connect(address, explorer)
    roles = RoleScanner(timelock, explorer).get_roles()

    if action == "view":
        view_roles(timelock.address, roles)
        if export_dir:
            export_results(export_dir, timelock, roles)
        return roles

    if action == "revoke":
        plan = plan_revocation(timelock, roles, raw_to_remove)
        if plan is None:
            print("No executors found to remove.")
        else:
            print(plan.format())
        if export_dir:
            export_results(export_dir, timelock, roles, plan)
        return plan

    raise ValueError(f"Unknown action: {action}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = parse_args(argv)

    try:
        run(args.action, args.network, args.address, args.to_remove, args.export_dir)
    except TimelockRolesError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.error("Process interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
