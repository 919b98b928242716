"""
Volume Reconciliation

Turns operator intent into a short, ordered sequence of admin API calls:
fetch snapshot -> validate/diff -> confirm -> apply.

Confirmation rules:
- create and set: empty answer or "yes" confirms
- delete and transfer: only the exact literal "yes" confirms

An operator abort is a normal outcome, not an error: the operation prints
"Abort by user." and returns False without touching the cluster.
"""

import logging
import re
import sys
from dataclasses import dataclass, field, fields
from typing import Iterator, List, Optional, TextIO, Union

from cli.admin_client import AdminClient
from cli.presentation import (
    DATA_PARTITION_TABLE_HEADER,
    META_PARTITION_TABLE_HEADER,
    VOLUME_DETAIL_TABLE_HEADER,
    VOLUME_TABLE_HEADER,
    ConfirmationProvider,
    format_data_partition_row,
    format_enabled_disabled,
    format_meta_partition_row,
    format_simple_vol_view,
    format_vol_detail_row,
    format_vol_info_row,
)
from shared.errors import PreconditionError, ValidationError
from shared.schemas import VOLUME_STATUS_NORMAL, SimpleVolView, UserTransferVolParam, VolumeInfo
from shared.token_utils import calc_auth_key

logger = logging.getLogger(__name__)

ABORT_MESSAGE = "Abort by user."
NO_CHANGES_MESSAGE = "No changes has been set."


def parse_bool(text: str, flag: str = "value") -> bool:
    """Strict boolean literal: exactly "true" or "false"."""
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValidationError(f"invalid {flag} '{text}', expected true or false")


_DECIMAL_INT = re.compile(r"-?[0-9]+")


def parse_positive_int(text, flag: str = "number") -> int:
    """Plain base-10 integer larger than 0; already-typed ints pass through"""
    if isinstance(text, int) and not isinstance(text, bool):
        value = text
    elif isinstance(text, str) and _DECIMAL_INT.fullmatch(text):
        value = int(text)
    else:
        raise ValidationError(f"invalid {flag} '{text}'")
    if value < 1:
        raise ValidationError(f"{flag} must be larger than 0")
    return value


# ============================================================================
# OVERRIDES / CHANGE SET
# ============================================================================

@dataclass
class VolumeOverrides:
    """Requested field changes for `set`; None means "leave unchanged".

    Fields carry the raw operator literal and are parsed strictly.
    """
    capacity: Optional[Union[int, str]] = None
    replicas: Optional[Union[int, str]] = None
    follower_read: Optional[str] = None
    authenticate: Optional[str] = None
    enable_token: Optional[str] = None
    auto_repair: Optional[str] = None
    zone_name: Optional[str] = None

    def supplied(self) -> bool:
        return any(getattr(self, f.name) is not None for f in fields(self))


@dataclass
class VolumeChangeSet:
    snapshot: SimpleVolView
    working: SimpleVolView
    lines: List[str] = field(default_factory=list)
    changed: bool = False

    def summary(self) -> str:
        return "Volume configuration changes:\n" + "\n".join(self.lines)


def _change_line(label: str, old: str, new: Optional[str]) -> str:
    if new is None:
        return f"  {label:<20}: {old}"
    return f"  {label:<20}: {old} -> {new}"


@dataclass
class _ValidatedOverrides:
    capacity: Optional[int] = None
    replicas: Optional[int] = None
    follower_read: Optional[bool] = None
    authenticate: Optional[bool] = None
    enable_token: Optional[bool] = None
    auto_repair: Optional[bool] = None
    zone_name: Optional[str] = None


def validate_overrides(overrides: VolumeOverrides) -> _ValidatedOverrides:
    """Check every supplied override; nothing is applied if any is bad"""
    result = _ValidatedOverrides()
    if overrides.capacity is not None:
        result.capacity = parse_positive_int(overrides.capacity, "capacity")
    if overrides.replicas is not None:
        result.replicas = parse_positive_int(overrides.replicas, "replicas")
    for name in ("follower_read", "authenticate", "enable_token", "auto_repair"):
        raw = getattr(overrides, name)
        if raw is not None:
            setattr(result, name, parse_bool(raw, name.replace("_", "-")))
    if overrides.zone_name is not None:
        if not overrides.zone_name.strip():
            raise ValidationError("zone-name must not be empty")
        result.zone_name = overrides.zone_name
    return result


def build_change_set(snapshot: SimpleVolView, overrides: VolumeOverrides) -> VolumeChangeSet:
    values = validate_overrides(overrides)
    working = snapshot.model_copy()
    change = VolumeChangeSet(snapshot=snapshot, working=working, changed=overrides.supplied())

    if values.capacity is not None:
        working.capacity = values.capacity
        change.lines.append(_change_line("Capacity", f"{snapshot.capacity} GB", f"{values.capacity} GB"))
    else:
        change.lines.append(_change_line("Capacity", f"{snapshot.capacity} GB", None))

    if values.replicas is not None:
        working.dp_replica_num = values.replicas
        change.lines.append(_change_line("Replicas", str(snapshot.dp_replica_num), str(values.replicas)))
    else:
        change.lines.append(_change_line("Replicas", str(snapshot.dp_replica_num), None))

    for attr, label in (
        ("follower_read", "Allow follower read"),
        ("authenticate", "Authenticate"),
        ("enable_token", "Enable token"),
        ("auto_repair", "Auto repair"),
    ):
        old = getattr(snapshot, attr)
        new = getattr(values, attr)
        if new is not None:
            setattr(working, attr, new)
            change.lines.append(_change_line(label, format_enabled_disabled(old), format_enabled_disabled(new)))
        else:
            change.lines.append(_change_line(label, format_enabled_disabled(old), None))

    if values.zone_name is not None:
        working.zone_name = values.zone_name
        change.lines.append(_change_line("ZoneName", snapshot.zone_name, values.zone_name))
    else:
        change.lines.append(_change_line("ZoneName", snapshot.zone_name, None))

    return change


# ============================================================================
# LISTING
# ============================================================================

@dataclass
class VolumeSummary:
    info: VolumeInfo
    view: SimpleVolView
    detailed: bool = False

    def row(self) -> str:
        if self.detailed:
            return format_vol_detail_row(self.view, self.info)
        return format_vol_info_row(self.info)


class VolumeListing:
    """Lazy rows over one list response; each iteration fetches snapshots anew"""

    def __init__(self, client: AdminClient, volumes: List[VolumeInfo], detailed: bool):
        self.client = client
        self.volumes = volumes
        self.detailed = detailed

    @property
    def header(self) -> str:
        return VOLUME_DETAIL_TABLE_HEADER if self.detailed else VOLUME_TABLE_HEADER

    def __len__(self):
        return len(self.volumes)

    def __iter__(self) -> Iterator[VolumeSummary]:
        for info in self.volumes:
            view = self.client.get_volume(info.name)
            yield VolumeSummary(info=info, view=view, detailed=self.detailed)


# ============================================================================
# RECONCILER
# ============================================================================

class VolumeReconciler:
    def __init__(self, client: AdminClient, confirm: ConfirmationProvider, out: Optional[TextIO] = None):
        self.client = client
        self.confirm = confirm
        self.out = out or sys.stdout

    def _print(self, text: str = ""):
        self.out.write(text + "\n")

    def _confirmed(self, text: str, empty_means_yes: bool) -> bool:
        answer = self.confirm.prompt(text)
        if answer == "yes" or (empty_means_yes and answer == ""):
            return True
        self._print(ABORT_MESSAGE)
        return False

    def list_volumes(self, keyword: str = "", detailed: bool = False) -> VolumeListing:
        return VolumeListing(self.client, self.client.list_volumes(keyword), detailed)

    def create(self, name: str, owner: str, mp_count: int = 3, dp_size: int = 120, capacity: int = 10,
               replicas: int = 3, follower_read: bool = True, auto_repair: bool = False,
               zone_name: str = "default", skip_confirm: bool = False) -> bool:
        mp_count = parse_positive_int(mp_count, "mp-count")
        dp_size = parse_positive_int(dp_size, "dp-size")
        capacity = parse_positive_int(capacity, "capacity")
        replicas = parse_positive_int(replicas, "replicas")

        if not skip_confirm:
            self._print("Create a new volume:")
            self._print(f"  Name                : {name}")
            self._print(f"  Owner               : {owner}")
            self._print(f"  Data partition size : {dp_size} GB")
            self._print(f"  Meta partition count: {mp_count}")
            self._print(f"  Capacity            : {capacity} GB")
            self._print(f"  Replicas            : {replicas}")
            self._print(f"  Allow follower read : {format_enabled_disabled(follower_read)}")
            self._print(f"  Auto repair         : {format_enabled_disabled(auto_repair)}")
            self._print(f"  ZoneName            : {zone_name}")
            if not self._confirmed("\nConfirm (yes/no)[yes]: ", empty_means_yes=True):
                return False

        self.client.create_volume(
            name=name,
            owner=owner,
            mp_count=mp_count,
            dp_size=dp_size,
            capacity=capacity,
            replicas=replicas,
            follower_read=follower_read,
            auto_repair=auto_repair,
            zone_name=zone_name,
        )
        logger.info(f"Volume {name} created for {owner}")
        self._print("Create volume success.")
        return True

    def info(self, name: str, meta_detail: bool = False, data_detail: bool = False):
        view = self.client.get_volume(name)
        self._print("Summary:")
        self._print(format_simple_vol_view(view))

        if meta_detail:
            partitions = sorted(self.client.get_meta_partitions(name), key=lambda p: p.partition_id)
            self._print()
            self._print("Meta partitions:")
            self._print(META_PARTITION_TABLE_HEADER)
            for partition in partitions:
                self._print(format_meta_partition_row(partition))

        if data_detail:
            view = self.client.get_data_partitions(name)
            partitions = sorted(view.data_partitions, key=lambda p: p.partition_id)
            self._print()
            self._print("Data partitions:")
            self._print(DATA_PARTITION_TABLE_HEADER)
            for partition in partitions:
                self._print(format_data_partition_row(partition))

    def delete(self, name: str, skip_confirm: bool = False) -> bool:
        if not skip_confirm:
            if not self._confirmed(f"Delete volume [{name}] (yes/no)[no]: ", empty_means_yes=False):
                return False

        view = self.client.get_volume(name)
        self.client.delete_volume(name, calc_auth_key(view.owner))
        logger.info(f"Volume {name} deleted")
        self._print("Delete volume success.")
        return True

    def transfer(self, name: str, new_owner: str, force: bool = False, skip_confirm: bool = False) -> bool:
        if not skip_confirm:
            prompt = f"Transfer volume [{name}] to user [{new_owner}] (yes/no)[no]: "
            if not self._confirmed(prompt, empty_means_yes=False):
                return False

        view = self.client.get_volume(name)
        if view.status != VOLUME_STATUS_NORMAL:
            raise PreconditionError(f"volume [{name}] status abnormal ({view.status}), transfer refused")

        user = self.client.get_user(new_owner)
        param = UserTransferVolParam(volume=name, user_src=view.owner, user_dst=user.user_id, force=force)
        self.client.transfer_volume(param)
        logger.info(f"Volume {name} transferred: {view.owner} -> {user.user_id}")
        self._print(f"Transfer volume [{name}] to user [{user.user_id}] success.")
        return True

    def add_data_partitions(self, name: str, count) -> int:
        number = parse_positive_int(count, "number")
        self.client.create_data_partitions(name, number)
        self._print(f"Create {number} data partitions for volume [{name}] success.")
        return number

    def plan_update(self, name: str, overrides: VolumeOverrides) -> VolumeChangeSet:
        validate_overrides(overrides)
        snapshot = self.client.get_volume(name)
        return build_change_set(snapshot, overrides)

    def set(self, name: str, overrides: VolumeOverrides, skip_confirm: bool = False) -> bool:
        if not overrides.supplied():
            self._print(NO_CHANGES_MESSAGE)
            return False

        change = self.plan_update(name, overrides)
        self._print(change.summary())

        if not skip_confirm:
            if not self._confirmed("\nConfirm (yes/no)[yes]: ", empty_means_yes=True):
                return False

        working = change.working
        self.client.update_volume(
            name=working.name,
            capacity=working.capacity,
            replicas=working.dp_replica_num,
            follower_read=working.follower_read,
            authenticate=working.authenticate,
            enable_token=working.enable_token,
            auto_repair=working.auto_repair,
            auth_key=calc_auth_key(change.snapshot.owner),
            zone_name=working.zone_name,
        )
        logger.info(f"Volume {name} configuration updated")
        self._print("Volume configuration has been set successfully.")
        return True
