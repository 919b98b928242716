from sqlalchemy import Column, Integer, BigInteger, String, Enum, ForeignKey, Boolean, DateTime, Text
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import enum

Base = declarative_base()

# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class NodeRole(str, enum.Enum):
    """Role of a registered cluster node"""
    METANODE = "metanode"
    DATANODE = "datanode"


class ClusterNodeStatus(str, enum.Enum):
    """Cluster node liveness status"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

# ============================================================================
# CORE MODEL DEFINITIONS
# ============================================================================

class User(Base):
    """Cluster user; volumes are owned by users"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Volume(Base):
    """Named, owned storage namespace"""
    __tablename__ = "volumes"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    owner = Column(String, nullable=False)
    zone_name = Column(String, default="default")

    # Capacity & replication
    capacity_gb = Column(Integer, nullable=False)
    dp_size_gb = Column(Integer, default=120)
    dp_replica_num = Column(Integer, default=3)
    mp_replica_num = Column(Integer, default=3)
    used_size_bytes = Column(BigInteger, default=0)

    # Access policy
    follower_read = Column(Boolean, default=False)
    auto_repair = Column(Boolean, default=False)
    authenticate = Column(Boolean, default=False)
    enable_token = Column(Boolean, default=False)

    # 0 = normal, 1 = marked for deletion
    status = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    meta_partitions = relationship("MetaPartition", back_populates="volume", cascade="all, delete-orphan")
    data_partitions = relationship("DataPartition", back_populates="volume", cascade="all, delete-orphan")


class MetaPartition(Base):
    """Inode range of a volume served by metanodes"""
    __tablename__ = "meta_partitions"

    id = Column(Integer, primary_key=True)
    volume_id = Column(Integer, ForeignKey("volumes.id"), nullable=False)
    start = Column(BigInteger, nullable=False)
    end = Column(BigInteger, nullable=False)
    max_inode_id = Column(BigInteger, default=0)
    leader_addr = Column(String, default="")
    members = Column(String, default="")  # Comma-separated node addresses
    status = Column(String, default="ReadWrite")

    volume = relationship("Volume", back_populates="meta_partitions")


class DataPartition(Base):
    """Extent container of a volume replicated across datanodes"""
    __tablename__ = "data_partitions"

    id = Column(Integer, primary_key=True)
    volume_id = Column(Integer, ForeignKey("volumes.id"), nullable=False)
    replica_num = Column(Integer, nullable=False)
    hosts = Column(String, default="")  # Comma-separated node addresses
    leader_addr = Column(String, default="")
    status = Column(String, default="ReadWrite")
    is_recover = Column(Boolean, default=False)

    volume = relationship("Volume", back_populates="data_partitions")


class ClusterNode(Base):
    """Metanode or datanode registered with the master"""
    __tablename__ = "cluster_nodes"

    id = Column(Integer, primary_key=True)
    address = Column(String, unique=True, nullable=False)
    role = Column(Enum(NodeRole), nullable=False)
    status = Column(Enum(ClusterNodeStatus), default=ClusterNodeStatus.ACTIVE)
    registered_at = Column(DateTime, default=datetime.utcnow)
    last_heartbeat_at = Column(DateTime, default=datetime.utcnow)
    metadata_json = Column(Text)
