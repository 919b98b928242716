from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from master.database import get_db
from master.models import Volume
from master.services.volume_manager import VolumeManager
from shared.schemas import (
    CreateVolumeRequest,
    SimpleVolView,
    UpdateVolumeRequest,
    VolumeInfo,
)
from shared.token_utils import verify_auth_key

router = APIRouter(tags=["admin"])

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def volume_info(vol: Volume) -> VolumeInfo:
    return VolumeInfo(
        name=vol.name,
        owner=vol.owner,
        create_time=vol.created_at.strftime(TIME_FORMAT) if vol.created_at else "",
        status=vol.status,
        total_size=vol.capacity_gb * (1 << 30),
        used_size=vol.used_size_bytes or 0,
    )


def simple_vol_view(vol: Volume) -> SimpleVolView:
    return SimpleVolView(
        name=vol.name,
        owner=vol.owner,
        zone_name=vol.zone_name or "",
        capacity=vol.capacity_gb,
        dp_replica_num=vol.dp_replica_num,
        mp_replica_num=vol.mp_replica_num,
        follower_read=bool(vol.follower_read),
        auto_repair=bool(vol.auto_repair),
        authenticate=bool(vol.authenticate),
        enable_token=bool(vol.enable_token),
        status=vol.status,
        mp_count=len(vol.meta_partitions),
        dp_count=len(vol.data_partitions),
        rw_dp_count=sum(1 for dp in vol.data_partitions if dp.status == "ReadWrite"),
        dp_size=vol.dp_size_gb,
        create_time=vol.created_at.strftime(TIME_FORMAT) if vol.created_at else "",
    )


def require_volume(mgr: VolumeManager, name: str) -> Volume:
    vol = mgr.get_volume(name)
    if not vol:
        raise HTTPException(status_code=404, detail=f"volume '{name}' not found")
    return vol


def require_auth_key(vol: Volume, auth_key: str):
    if not verify_auth_key(vol.owner, auth_key):
        raise HTTPException(status_code=403, detail=f"auth key mismatch for volume '{vol.name}'")


@router.get("/admin/listVols", response_model=list[VolumeInfo])
def list_vols(keywords: str = "", db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    return [volume_info(v) for v in mgr.list_volumes(keywords)]


@router.get("/admin/getVol", response_model=SimpleVolView)
def get_vol(name: str, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    return simple_vol_view(require_volume(mgr, name))


@router.post("/admin/createVol", response_model=SimpleVolView)
def create_vol(req: CreateVolumeRequest, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    success, vol, msg = mgr.create_volume(req)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return simple_vol_view(vol)


@router.post("/vol/update", response_model=SimpleVolView)
def update_vol(req: UpdateVolumeRequest, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    vol = require_volume(mgr, req.name)
    require_auth_key(vol, req.auth_key)
    success, vol, msg = mgr.update_volume(vol, req)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return simple_vol_view(vol)


@router.post("/vol/delete")
def delete_vol(name: str, authKey: str = "", db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    vol = require_volume(mgr, name)
    require_auth_key(vol, authKey)
    success, msg = mgr.delete_volume(vol)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return {"status": "deleted", "name": name}


@router.post("/dataPartition/create")
def create_data_partitions(name: str, count: int, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    vol = require_volume(mgr, name)
    success, created, msg = mgr.create_data_partitions(vol, count)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return {"name": name, "created": created}


@router.get("/admin/getCluster")
def get_cluster(request: Request, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    monitor = getattr(request.app.state, "node_monitor", None)
    return {
        "name": getattr(request.app.state, "cluster_name", ""),
        "volume_count": len(mgr.list_volumes()),
        "nodes": monitor.get_summary() if monitor else None,
    }
