"""
Master: the cluster control plane.

The master is the single source of truth for cluster metadata.
Responsibilities:
- User and volume CRUD (admin API)
- Meta/data partition allocation and placement
- Volume ownership transfer
- Node registration and heartbeat monitoring
"""
