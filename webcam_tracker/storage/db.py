"""
SQLite session store.

Every call opens its own connection, so no handle is held across
operations and writes serialise in SQLite itself.

Timestamps are written as fixed-width UTC text, so ORDER BY on the
time columns matches chronological order.
"""

import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from webcam_tracker.errors import SessionNotFoundError
from webcam_tracker.state.session import Session, SessionStatus


SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    app_name TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    duration_secs INTEGER,
    status TEXT NOT NULL
)
"""

COLUMNS = "id, app_name, start_time, end_time, duration_secs, status"


def connect(db_path: Path) -> sqlite3.Connection:
    return sqlite3.connect(str(db_path))


def init_db(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with closing(connect(db_path)) as conn, conn:
        conn.execute(SCHEMA)


# ---------------- ROW MAPPING ----------------


def format_time(value: datetime) -> str:
    # fixed-width UTC text, so ORDER BY on the column is chronological
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_time(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def row_to_session(row) -> Session:
    sid, app_name, start, end, duration, status = row
    return Session(
        id=sid,
        app_name=app_name,
        start_time=parse_time(start),
        end_time=parse_time(end) if end else None,
        duration_secs=duration,
        status=SessionStatus.parse(status),
    )


# ---------------- WRITES ----------------


def insert_session(db_path: Path, session: Session) -> int:
    with closing(connect(db_path)) as conn, conn:
        cur = conn.execute(
            "INSERT INTO sessions (app_name, start_time, end_time, duration_secs, status) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                session.app_name,
                format_time(session.start_time),
                format_time(session.end_time) if session.end_time else None,
                session.duration_secs,
                session.status.value,
            ),
        )
        return cur.lastrowid


def update_session(db_path: Path, session_id: int, end_time: datetime) -> int:
    """Close a session at end_time. Returns the stored duration in seconds."""
    with closing(connect(db_path)) as conn, conn:
        row = conn.execute(
            f"SELECT {COLUMNS} FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()

        if row is None:
            raise SessionNotFoundError(f"No session with id {session_id}")

        session = row_to_session(row)
        session.close(end_time)

        conn.execute(
            "UPDATE sessions SET end_time = ?, duration_secs = ?, status = ? WHERE id = ?",
            (
                format_time(session.end_time),
                session.duration_secs,
                session.status.value,
                session_id,
            ),
        )
        return session.duration_secs


# ---------------- QUERIES ----------------


def get_session(db_path: Path, session_id: int) -> Optional[Session]:
    with closing(connect(db_path)) as conn:
        row = conn.execute(
            f"SELECT {COLUMNS} FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
    return row_to_session(row) if row else None


def get_all_sessions(db_path: Path) -> List[Session]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute(
            f"SELECT {COLUMNS} FROM sessions ORDER BY start_time DESC, id DESC"
        ).fetchall()
    return [row_to_session(r) for r in rows]


def get_active_sessions(db_path: Path) -> List[Session]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute(
            f"SELECT {COLUMNS} FROM sessions WHERE status = ? "
            "ORDER BY start_time DESC, id DESC",
            (SessionStatus.RUNNING.value,),
        ).fetchall()
    return [row_to_session(r) for r in rows]
