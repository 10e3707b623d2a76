"""Unit tests for the log line parser."""

from datetime import datetime, timezone

import pytest

from webcam_tracker.observer.parser import (
    UNKNOWN_APP,
    ParserState,
    extract_app_name,
    extract_cam_apps,
    parse_log_line,
)
from webcam_tracker.observer.subsystems import Subsystem
from webcam_tracker.state.event import CameraEvent, EventType


NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

CC_PREFIX = (
    "2024-03-01 09:00:00.000000+0000  localhost ControlCenter[512]: "
    "(ControlCenter) [com.apple.controlcenter:sensor-indicators] "
    "Active activity attributions changed to "
)


def cc_line(*apps):
    tokens = ", ".join(f'"[cam] {app} (com.example.{app.lower()})"' for app in apps)
    return CC_PREFIX + "[" + tokens + "]"


def parse(line, subsystem, state):
    return parse_log_line(line, subsystem, state, clock=lambda: NOW)


def summary(events):
    return [(e.type, e.app_name) for e in events]


class TestAppNameExtraction:

    def test_process_token(self):
        line = "2024-03-01 09:00:00.1 localhost zoom.us[4242]: (AVFCapture) startRunning]:"
        assert extract_app_name(line) == "zoom.us"

    def test_first_matching_token_wins(self):
        line = "localhost FaceTime[10]: forwarded by avconferenced[77]: status"
        assert extract_app_name(line) == "FaceTime"

    def test_unknown_when_no_token(self):
        assert extract_app_name("camera status 1") == UNKNOWN_APP

    def test_non_digit_pid_is_not_a_match(self):
        assert extract_app_name("zoom[abc]: started") == UNKNOWN_APP


class TestCamTokens:

    def test_name_ends_before_bundle_id(self):
        assert extract_cam_apps("[cam] Zoom (us.zoom.xos)") == {"Zoom"}

    def test_name_without_delimiter_takes_rest_of_line(self):
        assert extract_cam_apps("attributions [cam] Photo Booth") == {"Photo Booth"}

    def test_duplicates_collapse(self):
        line = "[cam] Zoom (a), [cam] Zoom (b), [cam] Slack (c)"
        assert extract_cam_apps(line) == {"Zoom", "Slack"}


class TestNoise:

    @pytest.mark.parametrize("subsystem", list(Subsystem))
    def test_noise_lines_are_dropped(self, subsystem):
        state = ParserState()
        line = "zoom.us[1]: startRunning]: CMIODeviceStartStream camera status 1 backtrace"
        assert parse(line, subsystem, state) == []
        assert state == ParserState()

    def test_filtering_header_dropped(self):
        line = "Filtering the log data using " + "filtering header " + cc_line("Zoom")
        assert parse(line, Subsystem.CONTROL_CENTER, ParserState()) == []


class TestControlCenter:

    def test_diff_against_previous_set(self):
        state = ParserState(active_apps={"A", "B"})

        events = parse(cc_line("B", "C"), Subsystem.CONTROL_CENTER, state)

        assert summary(events) == [
            (EventType.STOPPED, "A"),
            (EventType.STARTED, "C"),
        ]
        assert state.active_apps == {"B", "C"}

    def test_same_line_twice_only_emits_once(self):
        state = ParserState()
        line = cc_line("Zoom", "Slack")

        first = parse(line, Subsystem.CONTROL_CENTER, state)
        second = parse(line, Subsystem.CONTROL_CENTER, state)

        assert summary(first) == [
            (EventType.STARTED, "Slack"),
            (EventType.STARTED, "Zoom"),
        ]
        assert second == []

    def test_empty_attribution_stops_everything(self):
        state = ParserState(active_apps={"Zoom", "Slack"})

        events = parse(CC_PREFIX + "[]", Subsystem.CONTROL_CENTER, state)

        assert sorted(summary(events)) == [
            (EventType.STOPPED, "Slack"),
            (EventType.STOPPED, "Zoom"),
        ]
        assert state.active_apps == set()

    def test_line_without_cam_tokens_stops_everything(self):
        state = ParserState(active_apps={"Zoom", "Slack"})
        line = (
            "localhost ControlCenter[512]: (ControlCenter) "
            "[com.apple.controlcenter:sensor-indicators] Sensor indicator refresh"
        )

        events = parse(line, Subsystem.CONTROL_CENTER, state)

        assert summary(events) == [
            (EventType.STOPPED, "Slack"),
            (EventType.STOPPED, "Zoom"),
        ]
        assert state.active_apps == set()

    def test_line_without_cam_tokens_on_empty_state_is_silent(self):
        state = ParserState()
        line = "localhost ControlCenter[512]: (ControlCenter) Sensor indicator refresh"

        assert parse(line, Subsystem.CONTROL_CENTER, state) == []
        assert state.active_apps == set()

    def test_timestamp_comes_from_clock(self):
        events = parse(cc_line("Zoom"), Subsystem.CONTROL_CENTER, ParserState())
        assert events == [CameraEvent.started("Zoom", NOW)]


class TestSkyLight:

    LINE = "localhost WindowServer[150]: (SkyLight) camera status {}"

    def test_repeated_on_emits_once(self):
        state = ParserState()

        first = parse(self.LINE.format(1), Subsystem.SKYLIGHT, state)
        second = parse(self.LINE.format(1), Subsystem.SKYLIGHT, state)

        assert summary(first) == [(EventType.STARTED, "WindowServer")]
        assert second == []

    def test_on_then_off(self):
        state = ParserState()

        events = parse(self.LINE.format(1), Subsystem.SKYLIGHT, state)
        events += parse(self.LINE.format(0), Subsystem.SKYLIGHT, state)

        assert [e.type for e in events] == [EventType.STARTED, EventType.STOPPED]
        assert state.camera_on is False

    def test_initial_off_is_recorded_silently(self):
        state = ParserState()

        assert parse(self.LINE.format(0), Subsystem.SKYLIGHT, state) == []
        assert state.camera_on is False

    def test_unknown_app_without_process_token(self):
        events = parse("Camera Status: 1", Subsystem.SKYLIGHT, ParserState())
        assert summary(events) == [(EventType.STARTED, UNKNOWN_APP)]

    def test_non_status_line_ignored(self):
        state = ParserState()
        assert parse("WindowServer[150]: display sleep", Subsystem.SKYLIGHT, state) == []
        assert state.camera_on is None


class TestCameraCapture:

    def test_start_and_stop(self):
        start = "localhost FaceTime[900]: <AVCaptureSession: 0x1> [AVCaptureSession startRunning]:"
        stop = "localhost FaceTime[900]: <AVCaptureSession: 0x1> [AVCaptureSession stopRunning]:"

        assert summary(parse(start, Subsystem.CAMERA_CAPTURE, ParserState())) == [
            (EventType.STARTED, "FaceTime")
        ]
        assert summary(parse(stop, Subsystem.CAMERA_CAPTURE, ParserState())) == [
            (EventType.STOPPED, "FaceTime")
        ]

    def test_private_redaction_never_emits(self):
        line = "localhost zoom.us[1]: <private> [AVCaptureSession startRunning]:"
        assert parse(line, Subsystem.CAMERA_CAPTURE, ParserState()) == []

    def test_without_colon_suffix_no_event(self):
        line = "localhost zoom.us[1]: startRunning called"
        assert parse(line, Subsystem.CAMERA_CAPTURE, ParserState()) == []


class TestCmio:

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("CMIODeviceStartStream: device 42", EventType.STARTED),
            ("-[CMIOStream startRunning]", EventType.STARTED),
            ("CMIODeviceStopStream: device 42", EventType.STOPPED),
            ("-[CMIOStream stopRunning]", EventType.STOPPED),
        ],
    )
    def test_markers(self, message, expected):
        line = f"localhost Photo Booth[77]: {message}"
        events = parse(line, Subsystem.CMIO, ParserState())
        assert [e.type for e in events] == [expected]

    def test_stop_wins_over_start(self):
        line = "VDCAssistant[3]: CMIODeviceStartStream -> CMIODeviceStopStream"
        events = parse(line, Subsystem.CMIO, ParserState())
        assert summary(events) == [(EventType.STOPPED, "VDCAssistant")]

    def test_unrelated_line(self):
        assert parse("VDCAssistant[3]: property changed", Subsystem.CMIO, ParserState()) == []
