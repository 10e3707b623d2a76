from enum import Enum
from dataclasses import dataclass
from typing import Optional


class NotificationType(str, Enum):

    SESSION_STARTED = "session-started"
    SESSION_ENDED = "session-ended"
    SESSION_UPDATED = "session-updated"


@dataclass
class Notification:
    type: NotificationType

    # optional payloads
    session_id: Optional[int] = None
    app_name: Optional[str] = None
