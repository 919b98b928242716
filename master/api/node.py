"""
Master Node API

Metanodes and datanodes register here on boot and then heartbeat
periodically. Registered ACTIVE nodes receive new partitions.
"""

import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from master.database import get_db
from master.models import ClusterNode, ClusterNodeStatus, NodeRole
from shared.schemas import NodeHeartbeat, NodeRegisterRequest

router = APIRouter(prefix="/node", tags=["node"])
logger = logging.getLogger(__name__)


def _parse_role(raw: str) -> NodeRole:
    try:
        return NodeRole(str(raw).strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"invalid node role: {raw}")


def _serialize_node(node: ClusterNode) -> dict:
    return {
        "address": node.address,
        "role": node.role.value,
        "status": node.status.value,
        "registered_at": node.registered_at.isoformat() if node.registered_at else None,
        "last_heartbeat_at": node.last_heartbeat_at.isoformat() if node.last_heartbeat_at else None,
        "metadata": json.loads(node.metadata_json) if node.metadata_json else None,
    }


@router.post("/add")
def add_node(payload: NodeRegisterRequest, db: Session = Depends(get_db)):
    role = _parse_role(payload.role)
    now = datetime.utcnow()

    node = db.scalars(select(ClusterNode).where(ClusterNode.address == payload.address)).first()
    if node is None:
        node = ClusterNode(
            address=payload.address,
            role=role,
            status=ClusterNodeStatus.ACTIVE,
            registered_at=now,
            last_heartbeat_at=now,
            metadata_json=json.dumps(payload.metadata) if payload.metadata else None,
        )
        db.add(node)
        logger.info(f"Node registered: {payload.address} ({role.value})")
    else:
        if node.role != role:
            raise HTTPException(status_code=400, detail=f"node {payload.address} already registered as {node.role.value}")
        node.status = ClusterNodeStatus.ACTIVE
        node.last_heartbeat_at = now
        if payload.metadata:
            node.metadata_json = json.dumps(payload.metadata)
        logger.info(f"Node re-registered: {payload.address} ({role.value})")

    db.commit()
    db.refresh(node)
    return {"registered": True, "node": _serialize_node(node)}


@router.post("/heartbeat")
def node_heartbeat(payload: NodeHeartbeat, db: Session = Depends(get_db)):
    node = db.scalars(select(ClusterNode).where(ClusterNode.address == payload.address)).first()
    if node is None:
        raise HTTPException(status_code=404, detail=f"node {payload.address} not registered")

    node.last_heartbeat_at = datetime.utcnow()
    if node.status != ClusterNodeStatus.ACTIVE:
        logger.info(f"Node {node.address} heartbeat resumed")
        node.status = ClusterNodeStatus.ACTIVE
    if payload.metrics:
        node.metadata_json = json.dumps(payload.metrics)
    db.commit()
    return {"status": "ok", "address": node.address}


@router.get("/list")
def list_nodes(db: Session = Depends(get_db)):
    nodes = db.scalars(select(ClusterNode).order_by(ClusterNode.address.asc())).all()
    return [_serialize_node(node) for node in nodes]
