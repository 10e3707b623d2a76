from enum import Enum
from dataclasses import dataclass
from datetime import datetime


class EventType(str, Enum):

    STARTED = "STARTED"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class CameraEvent:
    type: EventType
    app_name: str
    timestamp: datetime

    @classmethod
    def started(cls, app_name: str, timestamp: datetime) -> "CameraEvent":
        return cls(EventType.STARTED, app_name, timestamp)

    @classmethod
    def stopped(cls, app_name: str, timestamp: datetime) -> "CameraEvent":
        return cls(EventType.STOPPED, app_name, timestamp)

    @property
    def is_started(self) -> bool:
        return self.type == EventType.STARTED
