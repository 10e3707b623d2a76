from dataclasses import dataclass
from enum import Enum
from typing import List


class Subsystem(str, Enum):

    CONTROL_CENTER = "controlcenter"  # macOS Sonoma 14+
    SKYLIGHT = "skylight"  # some Ventura builds
    CAMERA_CAPTURE = "cameracapture"  # older releases
    CMIO = "cmio"  # CoreMediaIO fallback


@dataclass(frozen=True)
class SubsystemSpec:
    subsystem: Subsystem
    predicate: str
    marker: str


# ---------------- PREDICATES ----------------

SPECS = {
    Subsystem.CONTROL_CENTER: SubsystemSpec(
        Subsystem.CONTROL_CENTER,
        'subsystem == "com.apple.controlcenter" AND category == "sensor-indicators"',
        "Active activity attributions changed to",
    ),
    Subsystem.SKYLIGHT: SubsystemSpec(
        Subsystem.SKYLIGHT,
        'subsystem == "com.apple.SkyLight" AND eventMessage CONTAINS[c] "camera status"',
        "camera status",
    ),
    Subsystem.CAMERA_CAPTURE: SubsystemSpec(
        Subsystem.CAMERA_CAPTURE,
        'subsystem == "com.apple.cameracapture" AND '
        '(eventMessage CONTAINS "startRunning]:" OR eventMessage CONTAINS "stopRunning]:")',
        "Running]:",
    ),
    Subsystem.CMIO: SubsystemSpec(
        Subsystem.CMIO,
        'subsystem == "com.apple.cmio" AND '
        '(eventMessage CONTAINS "StartStream" OR eventMessage CONTAINS "StopStream" '
        'OR eventMessage CONTAINS "Running")',
        "CMIODevice",
    ),
}

# detection order, most common first
PRIORITY: List[Subsystem] = [
    Subsystem.CONTROL_CENTER,
    Subsystem.SKYLIGHT,
    Subsystem.CAMERA_CAPTURE,
    Subsystem.CMIO,
]

DEFAULT_SUBSYSTEM = Subsystem.CONTROL_CENTER


def predicate_for(subsystem: Subsystem) -> str:
    return SPECS[subsystem].predicate


def marker_for(subsystem: Subsystem) -> str:
    return SPECS[subsystem].marker
