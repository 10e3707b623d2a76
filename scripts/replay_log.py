import sys

from webcam_tracker.observer.parser import ParserState, parse_log_line
from webcam_tracker.observer.subsystems import Subsystem


def main():
    if len(sys.argv) < 2:
        print("usage: replay_log.py SUBSYSTEM < captured.log")
        print("subsystems: " + ", ".join(s.value for s in Subsystem))
        return 2

    subsystem = Subsystem(sys.argv[1])
    state = ParserState()

    for line in sys.stdin:
        for event in parse_log_line(line.rstrip("\n"), subsystem, state):
            print(
                f"{event.timestamp.strftime('%H:%M:%S')} | "
                f"{event.type.value:8} | "
                f"{event.app_name}"
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
