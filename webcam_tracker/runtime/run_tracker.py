import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from webcam_tracker.config import TrackerConfig, load_config
from webcam_tracker.errors import CommandError
from webcam_tracker.observer.detector import detect
from webcam_tracker.observer.log_stream import LogStreamSource
from webcam_tracker.storage import db

from . import commands
from .event_bus import EventBus
from .events import Notification, NotificationType
from .monitor_loop import MonitorLoop
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


# -------- OUTPUT --------


def format_session(session: dict) -> str:
    end = session["end_time"] or "-"
    duration = session["duration_secs"]
    duration = f"{duration}s" if duration is not None else "-"
    return (
        f"{session['id']:>5} | "
        f"{session['app_name'][:24]:24} | "
        f"{session['start_time'][:19]} | "
        f"{end[:19]:19} | "
        f"{duration:>8} | "
        f"{session['status']}"
    )


def print_listener(event: Notification):
    if event.type == NotificationType.SESSION_STARTED:
        print(f"[START] {event.app_name} (session {event.session_id})")
    elif event.type == NotificationType.SESSION_ENDED:
        print(f"[END] {event.app_name}")


# -------- COMMANDS --------


def cmd_run(args, config: TrackerConfig) -> int:
    db.init_db(config.db_path)

    manager = SessionManager(config.db_path)
    manager.recover_orphaned_sessions()

    bus = EventBus()
    bus.subscribe(print_listener)

    loop = MonitorLoop(manager, LogStreamSource(config=config), bus, config)

    if not args.paused:
        commands.resume_tracking(manager)

    loop.start()
    print("Tracking camera use... Ctrl+C to stop\n")

    try:
        while loop.is_alive:
            time.sleep(config.idle_interval)
    except KeyboardInterrupt:
        print("\nStopping tracker...")
    finally:
        loop.shutdown()

    return 0


def cmd_sessions(args, config: TrackerConfig) -> int:
    db.init_db(config.db_path)
    manager = SessionManager(config.db_path)

    if args.active:
        sessions = [s.to_dict() for s in manager.get_active_sessions()]
    else:
        sessions = commands.get_sessions(manager)

    for session in sessions:
        print(format_session(session))

    if not sessions:
        print("No sessions recorded.")
    return 0


def cmd_detect(args, config: TrackerConfig) -> int:
    print(detect(config).value)
    return 0


def cmd_check_access(args, config: TrackerConfig) -> int:
    ok = commands.check_log_access(config)
    print("log access: " + ("ok" if ok else "unavailable"))
    return 0 if ok else 1


# -------- ENTRYPOINT --------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webcam-tracker",
        description="Record which applications use the camera.",
    )
    parser.add_argument("--config", type=Path, help="key = value config file")
    parser.add_argument("--db", type=Path, help="session database path")
    parser.add_argument("--log-level", help="logging level (default INFO)")

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="track camera use until interrupted")
    run.add_argument("--paused", action="store_true", help="start with tracking paused")
    run.set_defaults(func=cmd_run)

    sessions = sub.add_parser("sessions", help="list recorded sessions")
    sessions.add_argument("--active", action="store_true", help="only running sessions")
    sessions.set_defaults(func=cmd_sessions)

    sub.add_parser("detect", help="print the detected log subsystem").set_defaults(
        func=cmd_detect
    )
    sub.add_parser("check-access", help="check that log stream can run").set_defaults(
        func=cmd_check_access
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.db:
        config.db_path = args.db
    if args.log_level:
        config.log_level = args.log_level

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args, config)
    except CommandError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
