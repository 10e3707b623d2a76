import logging
import subprocess
from typing import Callable, List, Optional

from webcam_tracker.config import TrackerConfig
from webcam_tracker.observer.subsystems import (
    DEFAULT_SUBSYSTEM,
    PRIORITY,
    Subsystem,
    marker_for,
    predicate_for,
)

logger = logging.getLogger(__name__)


Runner = Callable[[List[str], float], Optional[str]]


def probe_command(subsystem: Subsystem, config: TrackerConfig) -> List[str]:
    return [
        config.log_binary,
        "show",
        "--last",
        config.probe_window,
        "--style",
        "syslog",
        "--info",
        "--predicate",
        predicate_for(subsystem),
    ]


def run_probe(cmd: List[str], timeout: float) -> Optional[str]:
    """Run a one-shot log query. Any failure reads as no output."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Probe %s failed: %s", cmd[0], e)
        return None

    if result.returncode != 0:
        logger.debug("Probe exited with %d", result.returncode)
        return None

    return result.stdout


def probe(subsystem: Subsystem, config: TrackerConfig, runner: Runner = run_probe) -> bool:
    output = runner(probe_command(subsystem, config), config.probe_timeout)
    if not output:
        return False
    return marker_for(subsystem) in output


def detect(config: Optional[TrackerConfig] = None, runner: Runner = run_probe) -> Subsystem:
    config = config or TrackerConfig()

    for subsystem in PRIORITY:
        if probe(subsystem, config, runner):
            logger.info("Detected camera subsystem: %s", subsystem.value)
            return subsystem
        logger.debug("No recent %s activity", subsystem.value)

    logger.info(
        "No camera subsystem detected, defaulting to %s", DEFAULT_SUBSYSTEM.value
    )
    return DEFAULT_SUBSYSTEM
