"""
Table formatting and operator prompts for the admin CLI.
"""

import sys
from typing import Optional, Protocol, TextIO

from shared.schemas import (
    VOLUME_STATUS_MARK_DELETE,
    VOLUME_STATUS_NORMAL,
    DataPartitionView,
    MetaPartitionView,
    SimpleVolView,
    VolumeInfo,
)

_VOL_ROW = "{:<32}  {:<16}  {:>10}  {:>10}  {:<13}  {:<19}"
_VOL_DETAIL_ROW = "{:<32}  {:<16}  {:<10}  {:>9}  {:>8}  {:<13}  {:<11}  {:>4}  {:>5}  {:>5}  {:<13}"
_MP_ROW = "{:>8}  {:>12}  {:>20}  {:>12}  {:<21}  {:<11}  {}"
_DP_ROW = "{:>8}  {:>8}  {:<11}  {:<21}  {:<7}  {}"

VOLUME_TABLE_HEADER = _VOL_ROW.format("VOLUME", "OWNER", "USED", "TOTAL", "STATUS", "CREATE TIME")
VOLUME_DETAIL_TABLE_HEADER = _VOL_DETAIL_ROW.format(
    "VOLUME", "OWNER", "ZONE", "CAPACITY", "REPLICAS", "FOLLOWER-READ", "AUTO-REPAIR",
    "MP", "DP", "RW-DP", "STATUS"
)
META_PARTITION_TABLE_HEADER = _MP_ROW.format("ID", "START", "END", "MAX INODE", "LEADER", "STATUS", "MEMBERS")
DATA_PARTITION_TABLE_HEADER = _DP_ROW.format("ID", "REPLICAS", "STATUS", "LEADER", "RECOVER", "HOSTS")

_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def format_size(size: int) -> str:
    value = float(size)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} {_SIZE_UNITS[-1]}"


def format_enabled_disabled(flag: bool) -> str:
    return "Enabled" if flag else "Disabled"


def format_vol_status(status: int) -> str:
    if status == VOLUME_STATUS_NORMAL:
        return "Normal"
    if status == VOLUME_STATUS_MARK_DELETE:
        return "Marked delete"
    return "Unknown"


def format_vol_info_row(info: VolumeInfo) -> str:
    return _VOL_ROW.format(
        info.name, info.owner, format_size(info.used_size), format_size(info.total_size),
        format_vol_status(info.status), info.create_time
    )


def format_vol_detail_row(view: SimpleVolView, info: VolumeInfo) -> str:
    return _VOL_DETAIL_ROW.format(
        info.name, info.owner, view.zone_name, f"{view.capacity} GB", view.dp_replica_num,
        format_enabled_disabled(view.follower_read), format_enabled_disabled(view.auto_repair),
        view.mp_count, view.dp_count, view.rw_dp_count, format_vol_status(info.status)
    )


def format_simple_vol_view(view: SimpleVolView) -> str:
    lines = [
        f"  Name                 : {view.name}",
        f"  Owner                : {view.owner}",
        f"  Zone                 : {view.zone_name}",
        f"  Status               : {format_vol_status(view.status)}",
        f"  Capacity             : {view.capacity} GB",
        f"  Create time          : {view.create_time}",
        f"  Authenticate         : {format_enabled_disabled(view.authenticate)}",
        f"  Follower read        : {format_enabled_disabled(view.follower_read)}",
        f"  Enable token         : {format_enabled_disabled(view.enable_token)}",
        f"  Auto repair          : {format_enabled_disabled(view.auto_repair)}",
        f"  Dp replica number    : {view.dp_replica_num}",
        f"  Mp replica number    : {view.mp_replica_num}",
        f"  Data partition size  : {view.dp_size} GB",
        f"  Meta partition count : {view.mp_count}",
        f"  Data partition count : {view.dp_count} (read-write {view.rw_dp_count})",
    ]
    return "\n".join(lines)


def format_meta_partition_row(view: MetaPartitionView) -> str:
    return _MP_ROW.format(
        view.partition_id, view.start, view.end, view.max_inode_id, view.leader_addr or "-",
        view.status, ",".join(view.members) or "-"
    )


def format_data_partition_row(view: DataPartitionView) -> str:
    return _DP_ROW.format(
        view.partition_id, view.replica_num, view.status, view.leader_addr or "-",
        "Yes" if view.is_recover else "No", ",".join(view.hosts) or "-"
    )


# ============================================================================
# CONFIRMATION PROVIDERS
# ============================================================================

class ConfirmationProvider(Protocol):
    def prompt(self, text: str) -> str:
        """Show text to the operator and return the raw answer"""
        ...


class StdinConfirmation:
    """Interactive prompt; only the first word of the answer is kept"""

    def __init__(self, stdin: Optional[TextIO] = None, out: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.out = out or sys.stdout

    def prompt(self, text: str) -> str:
        self.out.write(text)
        self.out.flush()
        line = self.stdin.readline()
        words = line.split()
        return words[0] if words else ""


class AlwaysYes:
    """Non-interactive provider for automation"""

    def prompt(self, text: str) -> str:
        return "yes"
