"""
Role Registry

Explicit table from the configured role name to the Service factory and the
logging module tag used for the whole process lifetime. Built once at
startup and handed to the supervisor; nothing registers itself globally.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Mapping

from node.service import Service
from shared.errors import ConfigError


class ProcessRole(str, enum.Enum):
    """Cluster role hosted by a node process"""
    MASTER = "master"
    METANODE = "metanode"
    DATANODE = "datanode"


MODULE_MASTER = "master"
MODULE_META = "metaNode"
MODULE_DATA = "dataNode"


@dataclass(frozen=True)
class RoleSpec:
    role: ProcessRole
    factory: Callable[[], Service]
    module: str


class RoleRegistry:
    def __init__(self, specs: Mapping[ProcessRole, RoleSpec]):
        self._specs = dict(specs)

    def resolve(self, role_name: str) -> RoleSpec:
        """Raises ConfigError for any name outside the table"""
        try:
            role = ProcessRole(str(role_name or "").strip())
        except ValueError:
            raise ConfigError(f"role mismatch: {role_name!r}")
        spec = self._specs.get(role)
        if spec is None:
            raise ConfigError(f"role not supported by this build: {role.value}")
        return spec

    def roles(self) -> list[ProcessRole]:
        return list(self._specs)


def default_registry() -> RoleRegistry:
    from datanode.service import DataNodeService
    from master.service import MasterService
    from metanode.service import MetaNodeService

    return RoleRegistry({
        ProcessRole.MASTER: RoleSpec(ProcessRole.MASTER, MasterService, MODULE_MASTER),
        ProcessRole.METANODE: RoleSpec(ProcessRole.METANODE, MetaNodeService, MODULE_META),
        ProcessRole.DATANODE: RoleSpec(ProcessRole.DATANODE, DataNodeService, MODULE_DATA),
    })
