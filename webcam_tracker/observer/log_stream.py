import logging
import queue
import subprocess
import threading
from typing import Callable, Iterable, List, Optional

from webcam_tracker.config import TrackerConfig
from webcam_tracker.errors import MonitorStartError
from webcam_tracker.observer.base import EventSource
from webcam_tracker.observer.detector import detect
from webcam_tracker.observer.parser import ParserState, parse_log_line
from webcam_tracker.observer.subsystems import Subsystem, predicate_for
from webcam_tracker.state.event import CameraEvent

logger = logging.getLogger(__name__)


Channel = queue.Queue[Optional[CameraEvent]]


def stream_command(subsystem: Subsystem, config: TrackerConfig) -> List[str]:
    return [
        config.log_binary,
        "stream",
        "--style",
        "syslog",
        "--predicate",
        predicate_for(subsystem),
        "--info",
    ]


# -------- WORKER --------


def pump_lines(
    lines: Iterable[str],
    subsystem: Subsystem,
    state: ParserState,
    channel: Channel,
    stopped: Optional[threading.Event] = None,
) -> None:
    """Parse lines in order and forward every event. Always closes the channel."""
    try:
        for line in lines:
            if stopped is not None and stopped.is_set():
                break

            try:
                events = parse_log_line(line.rstrip("\n"), subsystem, state)
            except (KeyError, ValueError, TypeError):
                continue

            for event in events:
                channel.put(event)

    except (OSError, ValueError) as e:
        # the pipe was torn down under us by stop()
        logger.debug("Log stream read ended: %s", e)

    finally:
        channel.put(None)


# -------- LOG STREAM --------


class LogStreamSource(EventSource):
    """Tails `log stream` for one subsystem and parses it on a worker thread."""

    def __init__(
        self,
        subsystem: Optional[Subsystem] = None,
        config: Optional[TrackerConfig] = None,
        detector: Callable[[TrackerConfig], Subsystem] = detect,
    ):
        self.config = config or TrackerConfig()
        self.subsystem = subsystem
        self.detector = detector

        self.active_subsystem: Optional[Subsystem] = None
        self.proc: Optional[subprocess.Popen] = None
        self.worker: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self.proc is not None

    def start(self) -> Channel:
        if self.proc is not None:
            raise MonitorStartError("Log stream is already running")

        subsystem = self.subsystem or self.detector(self.config)
        cmd = stream_command(subsystem, self.config)

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise MonitorStartError(f"Failed to spawn log stream process: {e}") from e

        if proc.stdout is None:
            proc.kill()
            proc.wait()
            raise MonitorStartError("Failed to attach to log stream output")

        channel: Channel = queue.Queue()

        self.worker = threading.Thread(
            target=pump_lines,
            args=(proc.stdout, subsystem, ParserState(), channel),
            name=f"log-stream-{subsystem.value}",
            daemon=True,
        )
        self.proc = proc
        self.active_subsystem = subsystem
        self.worker.start()

        logger.info("Streaming %s camera events (pid %d)", subsystem.value, proc.pid)
        return channel

    def stop(self) -> None:
        proc, self.proc = self.proc, None
        worker, self.worker = self.worker, None

        if proc is not None:
            if proc.poll() is None:
                proc.terminate()
            try:
                proc.wait(timeout=self.config.stop_timeout)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
            logger.info("Log stream stopped")

        if worker is not None:
            worker.join(timeout=self.config.stop_timeout)

        if proc is not None and proc.stdout is not None:
            proc.stdout.close()

        self.active_subsystem = None

    def __del__(self):
        try:
            self.stop()
        except Exception:
            pass


# -------- SYNTHETIC FEED --------


class LineFeedSource(EventSource):
    """Feeds pre-recorded log lines through the parser. Used for tests and replays."""

    def __init__(self, lines: Iterable[str], subsystem: Subsystem):
        self.lines = lines
        self.subsystem = subsystem

        self.worker: Optional[threading.Thread] = None
        self.stopped = threading.Event()
        self.starts = 0

    @property
    def is_running(self) -> bool:
        return self.worker is not None

    def start(self) -> Channel:
        if self.worker is not None:
            raise MonitorStartError("Line feed is already running")

        channel: Channel = queue.Queue()
        self.stopped = threading.Event()
        self.worker = threading.Thread(
            target=pump_lines,
            args=(self.lines, self.subsystem, ParserState(), channel, self.stopped),
            name="line-feed",
            daemon=True,
        )
        self.worker.start()
        self.starts += 1
        return channel

    def stop(self) -> None:
        worker, self.worker = self.worker, None
        self.stopped.set()
        if worker is not None:
            worker.join(timeout=2)
