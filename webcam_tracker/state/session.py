from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SessionStatus(str, Enum):

    RUNNING = "running"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str) -> "SessionStatus":
        # anything unrecognised in the store is treated as closed
        if raw == cls.RUNNING.value:
            return cls.RUNNING
        return cls.COMPLETED


def elapsed_seconds(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds()))


@dataclass
class Session:

    app_name: str
    start_time: datetime

    end_time: Optional[datetime] = None
    duration_secs: Optional[int] = None
    status: SessionStatus = SessionStatus.RUNNING

    id: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.status == SessionStatus.RUNNING

    def close(self, end_time: datetime):
        self.end_time = end_time
        self.duration_secs = elapsed_seconds(self.start_time, end_time)
        self.status = SessionStatus.COMPLETED

    def to_dict(self) -> dict:
        """Serialisable view used by the command layer."""
        return {
            "id": self.id,
            "app_name": self.app_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_secs": self.duration_secs,
            "status": self.status.value,
        }
