"""
Operations exposed to the UI layer.

Failures surface as CommandError carrying a plain message string.
"""

import logging
import sqlite3
import subprocess
import time
from typing import List, Optional

from webcam_tracker.config import TrackerConfig
from webcam_tracker.errors import CommandError, TrackerError
from webcam_tracker.observer.subsystems import Subsystem, predicate_for

from .session_manager import SessionManager

logger = logging.getLogger(__name__)


ACCESS_PROBE_SECONDS = 0.1


def get_sessions(manager: SessionManager) -> List[dict]:
    try:
        return [s.to_dict() for s in manager.get_all_sessions()]
    except (sqlite3.Error, TrackerError) as e:
        raise CommandError(str(e)) from e


def get_tracking_status(manager: SessionManager) -> bool:
    return manager.is_tracking()


def pause_tracking(manager: SessionManager) -> None:
    try:
        manager.pause_tracking()
    except (sqlite3.Error, TrackerError) as e:
        raise CommandError(str(e)) from e


def resume_tracking(manager: SessionManager) -> None:
    try:
        manager.resume_tracking()
    except (sqlite3.Error, TrackerError) as e:
        raise CommandError(str(e)) from e


def check_log_access(config: Optional[TrackerConfig] = None) -> bool:
    """Whether a `log stream` process can be spawned on this host."""
    config = config or TrackerConfig()
    cmd = [
        config.log_binary,
        "stream",
        "--predicate",
        predicate_for(Subsystem.CMIO),
        "--style",
        "ndjson",
    ]

    try:
        child = subprocess.Popen(
            cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
    except OSError as e:
        logger.debug("log stream unavailable: %s", e)
        return False

    time.sleep(ACCESS_PROBE_SECONDS)
    child.kill()
    child.wait()
    return True
