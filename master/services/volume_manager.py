"""
Volume Operations

Complete lifecycle for volumes: creation with partition allocation,
configuration update, data partition growth, ownership transfer and
deletion. Methods return (success, result, message) tuples; the API layer
turns failures into HTTP errors.
"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from master.models import (
    ClusterNode,
    ClusterNodeStatus,
    DataPartition,
    MetaPartition,
    NodeRole,
    User,
    Volume,
)
from shared.schemas import (
    PARTITION_STATUS_READ_ONLY,
    PARTITION_STATUS_READ_WRITE,
    PARTITION_STATUS_UNAVAILABLE,
    CreateVolumeRequest,
    UpdateVolumeRequest,
)

logger = logging.getLogger(__name__)

VOLUME_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]{0,62}$")
META_PARTITION_INODE_STEP = 1 << 24
MAX_INODE_ID = (1 << 63) - 1
INIT_DATA_PARTITION_COUNT = 10
MAX_DATA_PARTITION_BATCH = 100


def split_addrs(raw: Optional[str]) -> List[str]:
    return [addr for addr in (raw or "").split(",") if addr]


class VolumeManager:
    """
    Manages volume lifecycle on the master.
    """

    def __init__(self, db: Session):
        """
        Initialize volume manager.

        Args:
            db: SQLAlchemy session
        """
        self.db = db

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def list_volumes(self, keyword: str = "") -> List[Volume]:
        stmt = select(Volume).order_by(Volume.id.asc())
        if keyword:
            stmt = stmt.where(Volume.name.contains(keyword))
        return self.db.scalars(stmt).all()

    def get_volume(self, name: str) -> Optional[Volume]:
        return self.db.scalars(select(Volume).where(Volume.name == name)).first()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.user_id == user_id)).first()

    def owned_volumes(self, user_id: str) -> List[str]:
        return self.db.scalars(
            select(Volume.name).where(Volume.owner == user_id).order_by(Volume.name.asc())
        ).all()

    # ========================================================================
    # PLACEMENT
    # ========================================================================

    def _active_nodes(self, role: NodeRole) -> List[str]:
        nodes = self.db.scalars(select(ClusterNode).where(
            ClusterNode.role == role, ClusterNode.status == ClusterNodeStatus.ACTIVE
        ).order_by(ClusterNode.address.asc())).all()
        return [node.address for node in nodes]

    @staticmethod
    def _pick_hosts(candidates: List[str], replica_num: int, offset: int) -> List[str]:
        """Round-robin pick of distinct hosts starting at offset"""
        if not candidates:
            return []
        count = min(replica_num, len(candidates))
        return [candidates[(offset + i) % len(candidates)] for i in range(count)]

    @staticmethod
    def _partition_status(hosts: List[str], replica_num: int) -> str:
        if not hosts:
            return PARTITION_STATUS_UNAVAILABLE
        if len(hosts) < replica_num:
            return PARTITION_STATUS_READ_ONLY
        return PARTITION_STATUS_READ_WRITE

    def _allocate_meta_partitions(self, volume: Volume, count: int):
        metanodes = self._active_nodes(NodeRole.METANODE)
        for index in range(count):
            start = index * META_PARTITION_INODE_STEP
            end = MAX_INODE_ID if index == count - 1 else (index + 1) * META_PARTITION_INODE_STEP
            members = self._pick_hosts(metanodes, volume.mp_replica_num, index)
            volume.meta_partitions.append(MetaPartition(
                start=start,
                end=end,
                max_inode_id=start,
                leader_addr=members[0] if members else "",
                members=",".join(members),
                status=self._partition_status(members, volume.mp_replica_num),
            ))

    def _allocate_data_partitions(self, volume: Volume, count: int):
        datanodes = self._active_nodes(NodeRole.DATANODE)
        existing = len(volume.data_partitions)
        for index in range(existing, existing + count):
            hosts = self._pick_hosts(datanodes, volume.dp_replica_num, index)
            volume.data_partitions.append(DataPartition(
                replica_num=volume.dp_replica_num,
                hosts=",".join(hosts),
                leader_addr=hosts[0] if hosts else "",
                status=self._partition_status(hosts, volume.dp_replica_num),
            ))

    # ========================================================================
    # USERS
    # ========================================================================

    def create_user(self, user_id: str) -> Tuple[bool, Optional[User], str]:
        if self.get_user(user_id):
            return False, None, f"user '{user_id}' already exists"
        user = User(user_id=user_id)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User created: {user_id}")
        return True, user, "success"

    # ========================================================================
    # VOLUME CREATION
    # ========================================================================

    def create_volume(self, req: CreateVolumeRequest) -> Tuple[bool, Optional[Volume], str]:
        """
        Create new volume.

        Steps:
        1. Validate name format and uniqueness
        2. Validate owner exists
        3. Create volume record
        4. Allocate meta partitions and initial data partitions

        Returns:
            (success: bool, volume: Volume or None, message: str)
        """
        if not VOLUME_NAME_PATTERN.match(req.name):
            return False, None, f"invalid volume name '{req.name}'"
        if self.get_volume(req.name):
            return False, None, f"volume '{req.name}' already exists"
        if not self.get_user(req.owner):
            return False, None, f"owner '{req.owner}' does not exist"

        volume = Volume(
            name=req.name,
            owner=req.owner,
            zone_name=req.zone_name,
            capacity_gb=req.capacity,
            dp_size_gb=req.dp_size,
            dp_replica_num=req.replicas,
            mp_replica_num=3,
            follower_read=req.follower_read,
            auto_repair=req.auto_repair,
            status=0,
        )
        self.db.add(volume)
        self._allocate_meta_partitions(volume, req.mp_count)
        self._allocate_data_partitions(volume, INIT_DATA_PARTITION_COUNT)
        self.db.commit()
        self.db.refresh(volume)

        logger.info(f"Volume created: name={req.name} owner={req.owner} mp={req.mp_count} capacity={req.capacity}GB")
        return True, volume, "success"

    # ========================================================================
    # VOLUME UPDATE
    # ========================================================================

    def update_volume(self, volume: Volume, req: UpdateVolumeRequest) -> Tuple[bool, Optional[Volume], str]:
        """Apply a full configuration snapshot; ownership is not touched"""
        if req.capacity < volume.capacity_gb and volume.used_size_bytes > req.capacity * (1 << 30):
            return False, None, f"capacity {req.capacity}GB is below used size of volume '{volume.name}'"

        volume.capacity_gb = req.capacity
        volume.dp_replica_num = req.replicas
        volume.follower_read = req.follower_read
        volume.authenticate = req.authenticate
        volume.enable_token = req.enable_token
        volume.auto_repair = req.auto_repair
        volume.zone_name = req.zone_name
        self.db.commit()
        self.db.refresh(volume)

        logger.info(f"Volume updated: name={volume.name} capacity={req.capacity}GB replicas={req.replicas}")
        return True, volume, "success"

    # ========================================================================
    # DATA PARTITIONS
    # ========================================================================

    def create_data_partitions(self, volume: Volume, count: int) -> Tuple[bool, int, str]:
        if count < 1:
            return False, 0, "count must be larger than 0"
        if count > MAX_DATA_PARTITION_BATCH:
            return False, 0, f"count must not exceed {MAX_DATA_PARTITION_BATCH}"
        self._allocate_data_partitions(volume, count)
        self.db.commit()
        logger.info(f"Created {count} data partitions for volume {volume.name}")
        return True, count, "success"

    # ========================================================================
    # OWNERSHIP TRANSFER
    # ========================================================================

    def transfer_volume(self, volume: Volume, user_src: str, user_dst: str, force: bool) -> Tuple[bool, str]:
        if volume.status != 0:
            return False, f"volume '{volume.name}' status abnormal"
        if not force and volume.owner != user_src:
            return False, f"user '{user_src}' is not the owner of volume '{volume.name}'"

        previous = volume.owner
        volume.owner = user_dst
        self.db.commit()
        logger.info(f"Volume {volume.name} transferred: {previous} -> {user_dst} (force={force})")
        return True, "success"

    # ========================================================================
    # VOLUME DELETION
    # ========================================================================

    def delete_volume(self, volume: Volume) -> Tuple[bool, str]:
        name = volume.name
        volume.status = 1
        self.db.flush()
        self.db.delete(volume)
        self.db.commit()
        logger.info(f"Volume deleted: {name}")
        return True, "success"
