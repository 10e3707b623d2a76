"""
Line parser for the macOS unified log.

Each subsystem reports camera use in its own text shape. Some shapes only
make sense relative to earlier lines, so callers thread one ParserState
through every call of a monitoring run.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from webcam_tracker.observer.subsystems import Subsystem
from webcam_tracker.state.event import CameraEvent


UNKNOWN_APP = "Unknown"

NOISE_MARKERS = ("filtering header", "backtrace")

CAM_MARKER = "[cam] "
PRIVATE_MARKER = "<private>"

CAPTURE_START = "startRunning]:"
CAPTURE_STOP = "stopRunning]:"

CMIO_START = ("startRunning", "CMIODeviceStartStream")
CMIO_STOP = ("stopRunning", "CMIODeviceStopStream")

CAMERA_STATUS_RE = re.compile(r"camera status\D*([01])", re.IGNORECASE)
PROCESS_TOKEN_RE = re.compile(r"^(.+)\[\d+\]:$")


@dataclass
class ParserState:
    active_apps: Set[str] = field(default_factory=set)
    camera_on: Optional[bool] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------- HELPERS ----------------


def extract_app_name(line: str) -> str:
    """
    First token shaped like 'zoom.us[1234]:' wins.
    Anything else is reported as Unknown.
    """
    for token in line.split():
        match = PROCESS_TOKEN_RE.match(token)
        if match:
            return match.group(1)
    return UNKNOWN_APP


def extract_cam_apps(line: str) -> Set[str]:
    apps = set()
    start = line.find(CAM_MARKER)

    while start != -1:
        rest = line[start + len(CAM_MARKER):]
        end = rest.find(" (")
        name = (rest if end == -1 else rest[:end]).strip()
        if name:
            apps.add(name)
        start = line.find(CAM_MARKER, start + len(CAM_MARKER))

    return apps


def is_noise(line: str) -> bool:
    return any(marker in line for marker in NOISE_MARKERS)


# ---------------- PER SUBSYSTEM ----------------


def parse_control_center(line: str, state: ParserState, now: datetime) -> List[CameraEvent]:
    # a line without any [cam] token means nothing is using the camera
    current = extract_cam_apps(line)
    previous = state.active_apps

    events = [CameraEvent.stopped(app, now) for app in sorted(previous - current)]
    events += [CameraEvent.started(app, now) for app in sorted(current - previous)]

    state.active_apps = current
    return events


def parse_skylight(line: str, state: ParserState, now: datetime) -> List[CameraEvent]:
    match = CAMERA_STATUS_RE.search(line)
    if not match:
        return []

    camera_on = match.group(1) == "1"
    previous = state.camera_on
    state.camera_on = camera_on

    if previous == camera_on:
        return []

    app = extract_app_name(line)

    if camera_on:
        return [CameraEvent.started(app, now)]

    # an initial "off" has nothing to close
    if previous is None:
        return []

    return [CameraEvent.stopped(app, now)]


def parse_camera_capture(line: str, state: ParserState, now: datetime) -> List[CameraEvent]:
    if PRIVATE_MARKER in line:
        return []

    if CAPTURE_START in line:
        return [CameraEvent.started(extract_app_name(line), now)]
    if CAPTURE_STOP in line:
        return [CameraEvent.stopped(extract_app_name(line), now)]

    return []


def parse_cmio(line: str, state: ParserState, now: datetime) -> List[CameraEvent]:
    if any(marker in line for marker in CMIO_STOP):
        return [CameraEvent.stopped(extract_app_name(line), now)]
    if any(marker in line for marker in CMIO_START):
        return [CameraEvent.started(extract_app_name(line), now)]
    return []


PARSERS = {
    Subsystem.CONTROL_CENTER: parse_control_center,
    Subsystem.SKYLIGHT: parse_skylight,
    Subsystem.CAMERA_CAPTURE: parse_camera_capture,
    Subsystem.CMIO: parse_cmio,
}


# ---------------- PUBLIC ----------------


def parse_log_line(
    line: str,
    subsystem: Subsystem,
    state: ParserState,
    clock: Callable[[], datetime] = utc_now,
) -> List[CameraEvent]:

    if is_noise(line):
        return []

    return PARSERS[subsystem](line, state, clock())
