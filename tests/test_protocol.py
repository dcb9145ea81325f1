from __future__ import annotations

from datetime import datetime, timezone

import pytest

from shared.errors import InvalidEventError
from shared.networking.protocol import (Message, MessageType, parse_violation_event,
                                        violation_event_to_dict)
from shared.notifications.formatting import describe_violation, format_violation_message
from shared.notifications.models import Violation, ViolationType


def _payload(**overrides):
    payload = {
        "teacher_id": "t1",
        "student_name": "Ani",
        "quiz_title": "Aljabar",
        "violation_type": "tab_switch",
        "timestamp": "2024-03-01T09:00:00+00:00",
        "violation_id": "v1",
        "quiz_id": "q1",
    }
    payload.update(overrides)
    return payload


def test_parse_violation_event_reads_all_fields():
    event = parse_violation_event(_payload())

    assert event.violation_type is ViolationType.TAB_SWITCH
    assert event.timestamp == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert event.violation_id == "v1"
    assert violation_event_to_dict(event) == _payload()


def test_parse_violation_event_allows_missing_id_and_timestamp():
    event = parse_violation_event(_payload(violation_id=None, timestamp=None))

    assert event.violation_id is None
    assert event.timestamp is None


@pytest.mark.parametrize("overrides", [
    {"violation_type": "copy_paste"},
    {"teacher_id": ""},
    {"student_name": None},
    {"timestamp": "yesterday"},
])
def test_parse_violation_event_rejects_invalid_payload(overrides):
    with pytest.raises(InvalidEventError):
        parse_violation_event(_payload(**overrides))


def test_parse_violation_event_rejects_non_object():
    with pytest.raises(InvalidEventError):
        parse_violation_event(["tab_switch"])


def test_message_json_keeps_type_and_data():
    message = Message(MessageType.REPORT_ACK, data={"violation_id": "v1"}, sender_id="server")

    parsed = Message.from_json(message.to_json())

    assert parsed.type is MessageType.REPORT_ACK
    assert parsed.data == {"violation_id": "v1"}
    assert parsed.sender_id == "server"


@pytest.mark.parametrize("violation_type, text", [
    (ViolationType.TAB_SWITCH, "switched tabs"),
    (ViolationType.WINDOW_BLUR, "left the quiz window"),
    (ViolationType.FULLSCREEN_EXIT, "exited fullscreen mode"),
    (ViolationType.OTHER, "performed an unauthorized action"),
])
def test_format_violation_message(violation_type, text):
    assert format_violation_message(violation_type) == text


def test_describe_violation():
    violation = Violation(
        id="v1",
        student_name="Ani",
        quiz_title="Aljabar",
        violation_type=ViolationType.FULLSCREEN_EXIT,
        occurred_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )

    assert describe_violation(violation) == (
        "Aljabar: Student Ani has exited fullscreen mode during the quiz."
    )


def test_parse_violation_event_accepts_trailing_z_timestamp():
    event = parse_violation_event(_payload(timestamp="2024-03-01T09:00:00.123Z"))

    assert event.timestamp == datetime(2024, 3, 1, 9, 0, 0, 123000, tzinfo=timezone.utc)


def test_message_from_dict_accepts_trailing_z_timestamp():
    message = Message.from_dict({"type": "ping", "timestamp": "2024-03-01T09:00:00Z"})

    assert message.timestamp == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
