import logging
import queue
import sqlite3
import threading
from typing import Optional

from webcam_tracker.config import TrackerConfig
from webcam_tracker.errors import MonitorStartError, TrackerError
from webcam_tracker.observer.base import EventSource
from webcam_tracker.state.event import CameraEvent

from .event_bus import EventBus
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class MonitorLoop:
    """
    Background control loop.

    Runs the event source while the manager is tracking, routes delivered
    events into sessions and idles otherwise.
    """

    def __init__(
        self,
        manager: SessionManager,
        source: EventSource,
        bus: Optional[EventBus] = None,
        config: Optional[TrackerConfig] = None,
    ):
        self.manager = manager
        self.source = source
        self.bus = bus or EventBus()
        self.config = config or TrackerConfig()

        self.source_lock = threading.Lock()
        self.stopping = threading.Event()
        self.thread: Optional[threading.Thread] = None

    # ---------- PUBLIC ----------

    def start(self):
        if self.thread is not None and self.thread.is_alive():
            return

        self.stopping.clear()
        self.thread = threading.Thread(target=self.run, name="camera-monitor", daemon=True)
        self.thread.start()

    def stop(self):
        self.stopping.set()

        # unblocks a thread waiting on the channel
        self.stop_source()

        if self.thread is not None:
            self.thread.join(timeout=self.config.stop_timeout + self.config.idle_interval)
            self.thread = None

    def shutdown(self):
        self.stop()
        self.manager.end_all_active_sessions()
        self.bus.emit_session_updated()

    @property
    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    # ---------- LOOP ----------

    def run(self):
        while not self.stopping.is_set():
            try:
                self.cycle()
            except Exception:
                logger.exception("Monitoring cycle failed")
                self.stop_source()
                self.stopping.wait(self.config.idle_interval)

    def cycle(self):
        if not self.manager.is_tracking():
            self.stop_source()
            self.stopping.wait(self.config.idle_interval)
            return

        channel = self.start_source()
        if channel is None:
            self.stopping.wait(self.config.idle_interval)
            return

        self.drain(channel)
        self.stop_source()
        self.stopping.wait(self.config.poll_interval)

    def drain(self, channel: "queue.Queue[Optional[CameraEvent]]"):
        while not self.stopping.is_set():
            try:
                event = channel.get(timeout=self.config.poll_interval)
            except queue.Empty:
                if not self.manager.is_tracking():
                    return
                continue

            if event is None:
                logger.info("Camera event stream ended")
                return

            if not self.apply(event):
                return

    def apply(self, event: CameraEvent) -> bool:
        """Route one event. Returns False once tracking has been paused."""
        # held across the check so a concurrent pause cannot interleave
        with self.manager.lock:
            if not self.manager.is_tracking():
                return False

            try:
                if event.is_started:
                    session_id = self.manager.start_session(event.app_name)
                    self.bus.emit_session_started(session_id, event.app_name)
                elif self.manager.end_session_for_app(event.app_name):
                    self.bus.emit_session_ended(event.app_name)
            except (sqlite3.Error, TrackerError) as e:
                logger.error("Could not apply %s for %s: %s", event.type.value, event.app_name, e)

        return True

    # ---------- SOURCE ----------

    def start_source(self) -> Optional["queue.Queue[Optional[CameraEvent]]"]:
        with self.source_lock:
            if self.source.is_running:
                self.source.stop()
            try:
                return self.source.start()
            except MonitorStartError as e:
                logger.error("Could not start camera monitor: %s", e)
                return None

    def stop_source(self):
        with self.source_lock:
            self.source.stop()
