"""
Wire models of the master admin API.

Shared by the master (FastAPI request/response models) and the admin client
(response parsing), so both sides agree on field names.
"""

from typing import Optional

from pydantic import BaseModel, Field

VOLUME_STATUS_NORMAL = 0
VOLUME_STATUS_MARK_DELETE = 1

PARTITION_STATUS_READ_WRITE = "ReadWrite"
PARTITION_STATUS_READ_ONLY = "ReadOnly"
PARTITION_STATUS_UNAVAILABLE = "Unavailable"


class VolumeInfo(BaseModel):
    """Entry of the volume list"""
    name: str
    owner: str
    create_time: str
    status: int = VOLUME_STATUS_NORMAL
    total_size: int = 0  # bytes
    used_size: int = 0  # bytes


class SimpleVolView(BaseModel):
    """Full configuration snapshot of one volume"""
    name: str
    owner: str
    zone_name: str = ""
    capacity: int  # GB
    dp_replica_num: int
    mp_replica_num: int = 3
    follower_read: bool = False
    auto_repair: bool = False
    authenticate: bool = False
    enable_token: bool = False
    status: int = VOLUME_STATUS_NORMAL
    mp_count: int = 0
    dp_count: int = 0
    rw_dp_count: int = 0
    dp_size: int = 0  # GB
    create_time: str = ""


class CreateVolumeRequest(BaseModel):
    name: str = Field(min_length=1)
    owner: str = Field(min_length=1)
    mp_count: int = Field(default=3, ge=1)
    dp_size: int = Field(default=120, ge=1)
    capacity: int = Field(default=10, ge=1)
    replicas: int = Field(default=3, ge=1)
    follower_read: bool = True
    auto_repair: bool = False
    zone_name: str = "default"


class UpdateVolumeRequest(BaseModel):
    name: str = Field(min_length=1)
    capacity: int = Field(ge=1)
    replicas: int = Field(ge=1)
    follower_read: bool
    authenticate: bool
    enable_token: bool
    auto_repair: bool
    zone_name: str
    auth_key: str


class MetaPartitionView(BaseModel):
    partition_id: int
    start: int
    end: int
    max_inode_id: int = 0
    leader_addr: str = ""
    members: list[str] = []
    status: str = PARTITION_STATUS_READ_WRITE


class DataPartitionView(BaseModel):
    partition_id: int
    status: str = PARTITION_STATUS_READ_WRITE
    replica_num: int
    hosts: list[str] = []
    leader_addr: str = ""
    is_recover: bool = False


class DataPartitionsView(BaseModel):
    data_partitions: list[DataPartitionView] = []


class UserInfo(BaseModel):
    user_id: str
    create_time: str = ""
    owned_volumes: list[str] = []


class CreateUserRequest(BaseModel):
    user_id: str = Field(min_length=1)


class UserTransferVolParam(BaseModel):
    volume: str
    user_src: str
    user_dst: str
    force: bool = False


class NodeRegisterRequest(BaseModel):
    address: str = Field(min_length=3)
    role: str
    metadata: Optional[dict] = None


class NodeHeartbeat(BaseModel):
    address: str
    role: str
    metrics: Optional[dict] = None
