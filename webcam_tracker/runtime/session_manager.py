import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List

from webcam_tracker.errors import TrackerError
from webcam_tracker.state.session import Session
from webcam_tracker.storage import db

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Owns session state for every app currently using the camera.

    The active index maps app name -> id of its running row and is only a
    cache over the store. One lock covers each public call.
    """

    def __init__(self, db_path: Path, clock: Callable[[], datetime] = utc_now):
        self.db_path = db_path
        self.clock = clock

        self.lock = threading.RLock()
        self.tracking = False
        self.active: Dict[str, int] = {}

    # ---------- SESSIONS ----------

    def start_session(self, app_name: str) -> int:
        with self.lock:
            # a repeated Started means the Stopped line was lost
            if app_name in self.active:
                self._close_quietly(app_name, self.active[app_name])

            session = Session(app_name, self.clock())
            session_id = db.insert_session(self.db_path, session)

            self.active[app_name] = session_id
            logger.info("Session %d started for %s", session_id, app_name)
            return session_id

    def end_session_for_app(self, app_name: str) -> bool:
        with self.lock:
            session_id = self.active.get(app_name)
            if session_id is None:
                return False

            self._close(app_name, session_id)
            return True

    def end_all_active_sessions(self) -> None:
        with self.lock:
            for app_name, session_id in list(self.active.items()):
                self._close_quietly(app_name, session_id)

    def _close(self, app_name: str, session_id: int) -> None:
        duration = db.update_session(self.db_path, session_id, self.clock())
        self.active.pop(app_name, None)
        logger.info("Session %d ended for %s after %ds", session_id, app_name, duration)

    def _close_quietly(self, app_name: str, session_id: int) -> None:
        try:
            self._close(app_name, session_id)
        except (sqlite3.Error, TrackerError) as e:
            logger.warning("Could not close session %d for %s: %s", session_id, app_name, e)
            self.active.pop(app_name, None)

    # ---------- TRACKING ----------

    def pause_tracking(self) -> None:
        with self.lock:
            self.end_all_active_sessions()
            self.tracking = False

    def resume_tracking(self) -> None:
        with self.lock:
            self.end_all_active_sessions()
            self.tracking = True

    def is_tracking(self) -> bool:
        with self.lock:
            return self.tracking

    # ---------- RECOVERY ----------

    def recover_orphaned_sessions(self) -> int:
        """Close rows left running by a previous process. Call before tracking starts."""
        with self.lock:
            now = self.clock()
            recovered = 0

            for session in db.get_all_sessions(self.db_path):
                if not session.is_running or session.id is None:
                    continue
                try:
                    db.update_session(self.db_path, session.id, now)
                    recovered += 1
                except (sqlite3.Error, TrackerError) as e:
                    logger.warning("Could not recover session %d: %s", session.id, e)

            if recovered:
                logger.info("Recovered %d orphaned session(s)", recovered)
            return recovered

    # ---------- QUERIES ----------

    def get_all_sessions(self) -> List[Session]:
        with self.lock:
            return db.get_all_sessions(self.db_path)

    def get_active_sessions(self) -> List[Session]:
        with self.lock:
            return db.get_active_sessions(self.db_path)

    def has_active_sessions(self) -> bool:
        with self.lock:
            return bool(self.active)

    def active_apps(self) -> Dict[str, int]:
        with self.lock:
            return dict(self.active)
