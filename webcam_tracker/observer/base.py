import queue
from abc import ABC, abstractmethod
from typing import Optional

from webcam_tracker.state.event import CameraEvent


class EventSource(ABC):
    """Platform-independent camera event source"""

    @abstractmethod
    def start(self) -> "queue.Queue[Optional[CameraEvent]]":
        """Begin producing events. A None item on the channel means end of stream."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Idempotent teardown"""
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        pass

    def __enter__(self) -> "queue.Queue[Optional[CameraEvent]]":
        return self.start()

    def __exit__(self, *exc):
        self.stop()
        return False
