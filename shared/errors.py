"""
Error taxonomy for CFS components.

Startup errors (ConfigError, ResourceLimitError) are fatal to the node
process. The remaining classes are raised by the admin client and the
volume reconciler and are reported to the operator verbatim.
"""


class ClusterError(Exception):
    """Base class for every error raised by CFS code"""


class ConfigError(ClusterError):
    """Bad role, unreadable config file or logging setup failure"""


class ResourceLimitError(ClusterError):
    """The platform refused to adjust a process resource limit"""


class ValidationError(ClusterError):
    """Bad operator input, detected before any remote call"""


class PreconditionError(ClusterError):
    """Remote state is not eligible for the requested operation"""


class RemoteError(ClusterError):
    """The master rejected a call; message is the master's own text"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteError):
    """Referenced user or volume does not exist on the master"""
