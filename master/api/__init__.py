"""
Master HTTP API routers.

- admin: volume list/get/create/update/delete, data partition growth
- client: meta/data partition views used by clients
- user: user create/info, volume ownership transfer
- node: metanode/datanode registration and heartbeats
"""
