"""
CFS Node Server

Single program hosting one cluster role selected by the config file.

Usage:
    cfs-server -c /etc/cfs/master.json
    cfs-server -v

Config keys read here: role, logDir, logLevel, prof. The role service reads
its own keys (listen, masterAddr, storeDir, ...).
"""

import argparse
import logging
import sys

from node.roles import default_registry
from node.supervisor import ProcessSupervisor
from shared.config import (
    CONFIG_KEY_LOG_DIR,
    CONFIG_KEY_LOG_LEVEL,
    CONFIG_KEY_PROF_PORT,
    CONFIG_KEY_ROLE,
    load_config_file,
)
from shared.errors import ConfigError, ResourceLimitError
from shared.logging_config import flush_logs

VERSION = "0.01"

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="CFS node server")
    parser.add_argument("-c", dest="config_file", default="", help="config file path")
    parser.add_argument("-v", dest="version", action="store_true", help="show version")
    return parser.parse_args(argv)


def main(argv=None, supervisor: ProcessSupervisor | None = None) -> int:
    args = parse_args(argv)
    if args.version:
        print(f"Current Version: {VERSION}")
        return 0

    try:
        cfg = load_config_file(args.config_file)
        if supervisor is None:
            supervisor = ProcessSupervisor(default_registry())
        service = supervisor.bootstrap(
            cfg.get_string(CONFIG_KEY_ROLE),
            cfg.get_string(CONFIG_KEY_LOG_DIR, "./logs"),
            cfg.get_string(CONFIG_KEY_LOG_LEVEL),
            cfg.get_string(CONFIG_KEY_PROF_PORT)
        )
        logger.info(f"Hello, CFS Storage, Current Version: {VERSION}")
        return supervisor.run(service, cfg)
    except (ConfigError, ResourceLimitError) as e:
        print(f"Fatal: {e}", file=sys.stderr)
        logger.error(f"Fatal: {e}")
        flush_logs()
        return 1
    except Exception as e:
        logger.error(f"action[main] process panic detail: {e}", exc_info=True)
        flush_logs()
        raise


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
