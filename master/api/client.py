from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from master.api.admin import require_volume
from master.database import get_db
from master.services.volume_manager import VolumeManager, split_addrs
from shared.schemas import DataPartitionView, DataPartitionsView, MetaPartitionView

router = APIRouter(prefix="/client", tags=["client"])


@router.get("/metaPartitions", response_model=list[MetaPartitionView])
def get_meta_partitions(name: str, db: Session = Depends(get_db)):
    vol = require_volume(VolumeManager(db), name)
    return [
        MetaPartitionView(
            partition_id=mp.id,
            start=mp.start,
            end=mp.end,
            max_inode_id=mp.max_inode_id or 0,
            leader_addr=mp.leader_addr or "",
            members=split_addrs(mp.members),
            status=mp.status,
        )
        for mp in vol.meta_partitions
    ]


@router.get("/partitions", response_model=DataPartitionsView)
def get_data_partitions(name: str, db: Session = Depends(get_db)):
    vol = require_volume(VolumeManager(db), name)
    return DataPartitionsView(data_partitions=[
        DataPartitionView(
            partition_id=dp.id,
            status=dp.status,
            replica_num=dp.replica_num,
            hosts=split_addrs(dp.hosts),
            leader_addr=dp.leader_addr or "",
            is_recover=bool(dp.is_recover),
        )
        for dp in vol.data_partitions
    ])
