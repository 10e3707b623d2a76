import sys

from webcam_tracker.runtime.run_tracker import main


if __name__ == "__main__":
    sys.exit(main())
