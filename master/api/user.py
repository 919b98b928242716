import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from master.api.admin import TIME_FORMAT, require_volume
from master.database import get_db
from master.models import User
from master.services.volume_manager import VolumeManager
from shared.schemas import CreateUserRequest, UserInfo, UserTransferVolParam

router = APIRouter(prefix="/user", tags=["user"])
logger = logging.getLogger(__name__)


def user_info(mgr: VolumeManager, user: User) -> UserInfo:
    return UserInfo(
        user_id=user.user_id,
        create_time=user.created_at.strftime(TIME_FORMAT) if user.created_at else "",
        owned_volumes=mgr.owned_volumes(user.user_id),
    )


@router.post("/create", response_model=UserInfo)
def create_user(req: CreateUserRequest, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    success, user, msg = mgr.create_user(req.user_id)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return user_info(mgr, user)


@router.get("/info", response_model=UserInfo)
def get_user(user: str, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    record = mgr.get_user(user)
    if not record:
        raise HTTPException(status_code=404, detail=f"user '{user}' not found")
    return user_info(mgr, record)


@router.post("/transferVol", response_model=UserInfo)
def transfer_volume(param: UserTransferVolParam, db: Session = Depends(get_db)):
    mgr = VolumeManager(db)
    vol = require_volume(mgr, param.volume)
    dst = mgr.get_user(param.user_dst)
    if not dst:
        raise HTTPException(status_code=404, detail=f"user '{param.user_dst}' not found")
    success, msg = mgr.transfer_volume(vol, param.user_src, param.user_dst, param.force)
    if not success:
        raise HTTPException(status_code=400, detail=msg)
    return user_info(mgr, dst)
