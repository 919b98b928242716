"""
Diagnostics Endpoint

Best-effort HTTP endpoint started on the `prof` port. Exposes:
- GET /debug/threads: stack of every live thread
- GET /debug/vars: process level variables (pid, uptime, rlimit, role)

A failure to serve is logged and never aborts node startup.
"""

import logging
import os
import sys
import threading
import time
import traceback
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from node.service import ApiServerThread

logger = logging.getLogger(__name__)


def create_profile_app(module: str) -> FastAPI:
    app = FastAPI(title=f"CFS {module} diagnostics")
    started_at = time.time()

    @app.get("/debug/threads", response_class=PlainTextResponse)
    def dump_threads():
        names = {t.ident: t.name for t in threading.enumerate()}
        lines = []
        for ident, frame in sys._current_frames().items():
            lines.append(f"Thread {names.get(ident, '?')} ({ident}):")
            lines.extend(line.rstrip() for line in traceback.format_stack(frame))
            lines.append("")
        return "\n".join(lines)

    @app.get("/debug/vars")
    def dump_vars():
        open_files = None
        try:
            import resource
            open_files = list(resource.getrlimit(resource.RLIMIT_NOFILE))
        except ImportError:
            pass
        return {
            "module": module,
            "pid": os.getpid(),
            "uptime_seconds": round(time.time() - started_at, 1),
            "threads": threading.active_count(),
            "rlimit_nofile": open_files,
        }

    return app


def start_profile_server(port: str, module: str, host: str = "0.0.0.0") -> Optional[ApiServerThread]:
    """Start the diagnostics endpoint in a daemon thread; None if it could not start"""
    try:
        server = ApiServerThread(
            create_profile_app(module),
            host=host,
            port=int(port),
            name="profile-server",
            on_exit=lambda exc: logger.warning(f"Diagnostics endpoint stopped: {exc}"),
            daemon=True
        )
        server.start()
        return server
    except (ValueError, OSError, RuntimeError) as e:
        logger.warning(f"Diagnostics endpoint not started on port {port!r}: {e}")
        return None
