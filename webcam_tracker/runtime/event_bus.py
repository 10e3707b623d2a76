import logging
from typing import Callable, List

from .events import Notification, NotificationType

logger = logging.getLogger(__name__)


class EventBus:

    def __init__(self):
        self.listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, fn: Callable[[Notification], None]):
        self.listeners.append(fn)

    def emit(self, event: Notification):
        for l in self.listeners:
            try:
                l(event)
            except Exception:
                # a broken listener must not stall session tracking
                logger.exception("Listener failed on %s", event.type.value)

    # -------- sessions --------

    def emit_session_started(self, session_id: int, app_name: str):
        self.emit(
            Notification(NotificationType.SESSION_STARTED, session_id=session_id, app_name=app_name)
        )
        self.emit_session_updated()

    def emit_session_ended(self, app_name: str):
        self.emit(Notification(NotificationType.SESSION_ENDED, app_name=app_name))
        self.emit_session_updated()

    def emit_session_updated(self):
        self.emit(Notification(NotificationType.SESSION_UPDATED))
