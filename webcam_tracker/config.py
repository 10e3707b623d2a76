import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


APP_DIR = Path.home() / "Library" / "Application Support" / "webcam-tracker"
DB_ENV_VAR = "WEBCAM_TRACKER_DB"


def default_db_path() -> Path:
    return APP_DIR / "sessions.db"


@dataclass
class TrackerConfig:

    db_path: Path = field(default_factory=default_db_path)

    # external log tool
    log_binary: str = "log"
    probe_window: str = "5m"
    probe_timeout: float = 15.0

    # monitoring loop cadence (seconds)
    poll_interval: float = 0.5
    idle_interval: float = 1.0
    stop_timeout: float = 2.0

    log_level: str = "INFO"


def read_config_file(config_path: Path) -> Dict[str, str]:
    """Parse a flat ``key = value`` file. Missing files yield an empty dict."""
    config: Dict[str, str] = {}

    if not config_path.exists():
        logger.debug("Config file not found: %s", config_path)
        return config

    with open(config_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.split("#")[0].strip()

            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]

            config[key] = value

    return config


def load_config(config_path: Optional[Path] = None) -> TrackerConfig:
    config = TrackerConfig()

    raw = read_config_file(config_path) if config_path else {}
    known = {f.name for f in fields(TrackerConfig)}

    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r", key)
            continue

        current = getattr(config, key)
        try:
            if isinstance(current, Path):
                setattr(config, key, Path(value).expanduser())
            elif isinstance(current, float):
                setattr(config, key, float(value))
            else:
                setattr(config, key, value)
        except ValueError:
            logger.warning("Invalid value for %s: %r", key, value)

    env_db = os.environ.get(DB_ENV_VAR)
    if env_db:
        config.db_path = Path(env_db).expanduser()

    return config
