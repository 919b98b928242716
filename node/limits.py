import logging

from shared.errors import ResourceLimitError

logger = logging.getLogger(__name__)

OPEN_FILES_LIMIT = 1024000


def raise_open_files_limit(target: int = OPEN_FILES_LIMIT) -> tuple[int, int]:
    """
    Raise RLIMIT_NOFILE (soft and hard) to target.

    Returns:
        The (soft, hard) limit read back after the change

    Raises:
        ResourceLimitError: platform has no rlimit support or denied the change
    """
    try:
        import resource
    except ImportError:
        raise ResourceLimitError("open files limit cannot be adjusted on this platform")

    try:
        before = resource.getrlimit(resource.RLIMIT_NOFILE)
    except (OSError, ValueError) as e:
        raise ResourceLimitError(f"Error Getting Rlimit {e}")
    logger.info(f"Rlimit before: soft={before[0]} hard={before[1]}")

    try:
        resource.setrlimit(resource.RLIMIT_NOFILE, (target, target))
    except (OSError, ValueError) as e:
        raise ResourceLimitError(f"Error Setting Rlimit {e}")

    try:
        final = resource.getrlimit(resource.RLIMIT_NOFILE)
    except (OSError, ValueError) as e:
        raise ResourceLimitError(f"Error Getting Rlimit {e}")
    logger.info(f"Rlimit Final: soft={final[0]} hard={final[1]}")
    return final
