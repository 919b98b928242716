"""
CFS Admin CLI

Usage:
    cfs-cli volume list [-d] [--keyword K]
    cfs-cli volume create NAME OWNER [--capacity 10] [--replicas 3] [-y]
    cfs-cli volume info NAME [-m] [-d]
    cfs-cli volume delete NAME [-y]
    cfs-cli volume transfer NAME NEWOWNER [-f] [-y]
    cfs-cli volume add-dp VOLUME COUNT
    cfs-cli volume set NAME [--capacity N] [--follower-read true|false] ... [-y]
    cfs-cli user create USER
    cfs-cli user info USER

Environment Variables:
    CFS_MASTER_ADDR: Master address(es), comma separated (default: 127.0.0.1:17010)
    CFS_HTTP_TIMEOUT: Request timeout in seconds (default: 10)
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO

from cli.admin_client import AdminClient
from cli.presentation import AlwaysYes, ConfirmationProvider, StdinConfirmation
from cli.reconciler import VolumeOverrides, VolumeReconciler, parse_bool
from shared.config import DEFAULT_HTTP_TIMEOUT, DEFAULT_MASTER_ADDR
from shared.errors import ClusterError
from shared.logging_config import normalize_log_level, setup_logging

logger = logging.getLogger(__name__)


def _bool_arg(text: str) -> bool:
    try:
        return parse_bool(text)
    except ClusterError as e:
        raise argparse.ArgumentTypeError(str(e))


# ============================================================================
# VOLUME COMMANDS
# ============================================================================

def cmd_volume_list(args, reconciler: VolumeReconciler, out: TextIO):
    listing = reconciler.list_volumes(args.keyword, args.detail_mod)
    out.write(listing.header + "\n")
    for summary in listing:
        out.write(summary.row() + "\n")


def cmd_volume_create(args, reconciler: VolumeReconciler, out: TextIO):
    reconciler.create(
        args.name,
        args.owner,
        mp_count=args.mp_count,
        dp_size=args.dp_size,
        capacity=args.capacity,
        replicas=args.replicas,
        follower_read=args.follower_read,
        auto_repair=args.auto_repair,
        zone_name=args.zone_name,
        skip_confirm=args.yes,
    )


def cmd_volume_info(args, reconciler: VolumeReconciler, out: TextIO):
    reconciler.info(args.name, meta_detail=args.meta_partition, data_detail=args.data_partition)


def cmd_volume_delete(args, reconciler: VolumeReconciler, out: TextIO):
    reconciler.delete(args.name, skip_confirm=args.yes)


def cmd_volume_transfer(args, reconciler: VolumeReconciler, out: TextIO):
    reconciler.transfer(args.name, args.user, force=args.force, skip_confirm=args.yes)


def cmd_volume_add_dp(args, reconciler: VolumeReconciler, out: TextIO):
    reconciler.add_data_partitions(args.volume, args.number)


def cmd_volume_set(args, reconciler: VolumeReconciler, out: TextIO):
    overrides = VolumeOverrides(
        capacity=args.capacity,
        replicas=args.replicas,
        follower_read=args.follower_read,
        authenticate=args.authenticate,
        enable_token=args.enable_token,
        auto_repair=args.auto_repair,
        zone_name=args.zone_name,
    )
    reconciler.set(args.name, overrides, skip_confirm=args.yes)


# ============================================================================
# USER COMMANDS
# ============================================================================

def cmd_user_create(args, reconciler: VolumeReconciler, out: TextIO):
    user = reconciler.client.create_user(args.user)
    out.write(f"Create user [{user.user_id}] success.\n")


def cmd_user_info(args, reconciler: VolumeReconciler, out: TextIO):
    user = reconciler.client.get_user(args.user)
    out.write(f"  User ID       : {user.user_id}\n")
    out.write(f"  Create time   : {user.create_time}\n")
    out.write(f"  Owned volumes : {', '.join(user.owned_volumes) or '-'}\n")


# ============================================================================
# PARSER
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cfs-cli", description="CFS admin command line tool")
    parser.add_argument("--master", default=DEFAULT_MASTER_ADDR, help="Master address(es), comma separated")
    parser.add_argument("--timeout", type=int, default=DEFAULT_HTTP_TIMEOUT, help="Request timeout in seconds")
    parser.add_argument("--log-level", default="error", help="debug, info, warn or error")
    commands = parser.add_subparsers(dest="command", required=True)

    # volume
    volume = commands.add_parser("volume", aliases=["vol"], help="Manage cluster volumes")
    ops = volume.add_subparsers(dest="op", required=True)

    p = ops.add_parser("list", aliases=["ls"], help="List cluster volumes")
    p.add_argument("-d", "--detail-mod", action="store_true", help="Display details of each volume")
    p.add_argument("--keyword", default="", help="Only list volumes whose name contains this keyword")
    p.set_defaults(func=cmd_volume_list)

    p = ops.add_parser("create", help="Create a new volume")
    p.add_argument("name")
    p.add_argument("owner")
    p.add_argument("--mp-count", type=int, default=3, help="Number of meta partitions")
    p.add_argument("--dp-size", type=int, default=120, help="Size of each data partition in GB")
    p.add_argument("--capacity", type=int, default=10, help="Volume capacity in GB")
    p.add_argument("--replicas", type=int, default=3, help="Number of data partition replicas")
    p.add_argument("--follower-read", type=_bool_arg, default=True, help="Allow follower read (true|false)")
    p.add_argument("--auto-repair", type=_bool_arg, default=False, help="Enable auto repair (true|false)")
    p.add_argument("--zone-name", default="default", help="Zone name")
    p.add_argument("-y", "--yes", action="store_true", help="Answer yes for all questions")
    p.set_defaults(func=cmd_volume_create)

    p = ops.add_parser("info", help="Show volume information")
    p.add_argument("name")
    p.add_argument("-m", "--meta-partition", action="store_true", help="Display meta partition detail")
    p.add_argument("-d", "--data-partition", action="store_true", help="Display data partition detail")
    p.set_defaults(func=cmd_volume_info)

    p = ops.add_parser("delete", help="Delete a volume")
    p.add_argument("name")
    p.add_argument("-y", "--yes", action="store_true", help="Answer yes for all questions")
    p.set_defaults(func=cmd_volume_delete)

    p = ops.add_parser("transfer", aliases=["trans"], help="Transfer a volume to another user")
    p.add_argument("name")
    p.add_argument("user")
    p.add_argument("-f", "--force", action="store_true", help="Skip the current owner check")
    p.add_argument("-y", "--yes", action="store_true", help="Answer yes for all questions")
    p.set_defaults(func=cmd_volume_transfer)

    p = ops.add_parser("add-dp", help="Create data partitions for a volume")
    p.add_argument("volume")
    p.add_argument("number")
    p.set_defaults(func=cmd_volume_add_dp)

    p = ops.add_parser("set", help="Set configuration of a volume")
    p.add_argument("name")
    p.add_argument("--capacity", default=None, help="Volume capacity in GB")
    p.add_argument("--replicas", default=None, help="Number of data partition replicas")
    p.add_argument("--follower-read", default=None, help="Allow follower read (true|false)")
    p.add_argument("--authenticate", default=None, help="Enable authenticate (true|false)")
    p.add_argument("--enable-token", default=None, help="Enable token validation (true|false)")
    p.add_argument("--auto-repair", default=None, help="Enable auto repair (true|false)")
    p.add_argument("--zone-name", default=None, help="Zone name")
    p.add_argument("-y", "--yes", action="store_true", help="Answer yes for all questions")
    p.set_defaults(func=cmd_volume_set)

    # user
    user = commands.add_parser("user", help="Manage cluster users")
    ops = user.add_subparsers(dest="op", required=True)

    p = ops.add_parser("create", help="Create a user")
    p.add_argument("user")
    p.set_defaults(func=cmd_user_create)

    p = ops.add_parser("info", help="Show user information")
    p.add_argument("user")
    p.set_defaults(func=cmd_user_info)

    return parser


def main(
    argv: Optional[List[str]] = None,
    client: Optional[AdminClient] = None,
    confirm: Optional[ConfirmationProvider] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_parser().parse_args(argv)

    setup_logging("cli", level=normalize_log_level(args.log_level))

    if confirm is None:
        yes = getattr(args, "yes", False)
        confirm = AlwaysYes() if yes else StdinConfirmation(out=out)
    client = client or AdminClient(args.master, timeout=args.timeout)
    reconciler = VolumeReconciler(client, confirm, out=out)

    try:
        args.func(args, reconciler, out)
    except ClusterError as e:
        logger.debug(f"Command failed: {e!r}")
        err.write(f"Error: {e}\n")
        return 1

    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
