"""
Unit Tests: Broadcast Messages

Test cases:
- Envelope layout and camelCase payloads
- Parsing back into typed messages
- Rejection of unknown or malformed envelopes
"""

from decimal import Decimal

import pytest

from triviaboard.realtime import (
    EventLifecycle,
    MessageFormatError,
    ScoreDeleted,
    ScoreUpdated,
    event_channel,
    parse_message,
    to_envelope,
)
from triviaboard.realtime.messages import is_valid_event_id


def test_event_channel_name():
    assert event_channel("42") == "event:42"
    assert event_channel("42", prefix="quiz-") == "quiz-42"


def test_event_id_validation():
    assert is_valid_event_id("abc")
    assert not is_valid_event_id("")
    assert not is_valid_event_id(None)
    assert not is_valid_event_id(42)


def test_score_updated_envelope():
    envelope = to_envelope(
        ScoreUpdated(
            team_id="t1",
            round_number=2,
            points=Decimal("15"),
            changed_by="op-b",
            changed_by_name="Bo",
        )
    )

    assert envelope["name"] == "score:updated"
    data = envelope["data"]
    assert data["teamId"] == "t1"
    assert data["roundNumber"] == 2
    assert data["points"] == "15"
    assert data["changedBy"] == "op-b"
    assert "oldPoints" not in data
    assert "timestamp" in data


def test_parse_camel_case_payload():
    message = parse_message(
        {
            "name": "score:updated",
            "data": {
                "teamId": "t1",
                "roundNumber": 2,
                "points": 15,
                "oldPoints": 12,
                "changedBy": "op-b",
            },
        }
    )

    assert isinstance(message, ScoreUpdated)
    assert message.points == Decimal("15")
    assert message.old_points == Decimal("12")


def test_parse_round_trip_for_deletion():
    original = ScoreDeleted(team_id="t1", round_number=3, changed_by="op-b")
    parsed = parse_message(to_envelope(original))

    assert isinstance(parsed, ScoreDeleted)
    assert parsed.team_id == "t1"
    assert parsed.round_number == 3


def test_lifecycle_message():
    parsed = parse_message(
        {"name": "event:lifecycle", "data": {"action": "started", "eventId": "e1"}}
    )

    assert isinstance(parsed, EventLifecycle)
    assert parsed.event_id == "e1"


@pytest.mark.parametrize(
    "envelope",
    [
        {"name": "score:exploded", "data": {}},
        {"data": {}},
        {"name": "score:updated", "data": {"teamId": "t1"}},
        {"name": "event:status", "data": {"status": "paused"}},
        {"name": "event:lifecycle", "data": {"action": "renamed", "eventId": "e1"}},
        ["not", "an", "object"],
    ],
)
def test_rejects_bad_envelopes(envelope):
    with pytest.raises(MessageFormatError):
        parse_message(envelope)
