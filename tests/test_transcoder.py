"""Tests for upstream chunk -> DeltaEvent mapping and the outgoing wire format."""

import dataclasses

import orjson
import pytest

from gateway.models.stream import DeltaEvent, DeltaFragment
from gateway.services.transcoder import FrameParseError, transcode
from gateway.utils.sse import format_delta, format_done, format_error


def test_first_fragment_with_role():
    event = transcode(
        '{"id":"x","choices":[{"delta":{"role":"assistant","content":"Hi"},"finish_reason":null}]}'
    )
    assert event == DeltaEvent(id="x", delta=DeltaFragment(role="assistant", content="Hi"))
    assert event.to_payload() == {"id": "x", "delta": {"role": "assistant", "content": "Hi"}}


def test_missing_content_becomes_empty_string():
    event = transcode('{"id":"x","choices":[{"delta":{"role":"assistant"}}]}')
    assert event.delta.content == ""
    assert event.to_payload()["delta"] == {"role": "assistant", "content": ""}


def test_null_content_becomes_empty_string():
    event = transcode('{"id":"x","choices":[{"delta":{"content":null}}]}')
    assert event.delta.content == ""


def test_missing_delta_is_empty_fragment():
    event = transcode('{"id":"x","choices":[{"finish_reason":"stop"}]}')
    assert event.delta == DeltaFragment(content="")
    assert event.finish_reason == "stop"


def test_finish_reason_passes_through():
    event = transcode('{"id":"x","choices":[{"delta":{},"finish_reason":"length"}]}')
    assert event.to_payload() == {
        "id": "x",
        "delta": {"content": ""},
        "finishReason": "length",
    }


def test_role_omitted_on_later_fragments():
    payload = transcode('{"id":"x","choices":[{"delta":{"content":"lo"}}]}').to_payload()
    assert "role" not in payload["delta"]
    assert "finishReason" not in payload


def test_only_first_choice_is_used():
    event = transcode(
        '{"id":"x","choices":[{"delta":{"content":"a"}},{"delta":{"content":"b"}}]}'
    )
    assert event.delta.content == "a"


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        "[1, 2]",
        '"text"',
        '{"id":"x"}',
        '{"id":"x","choices":[]}',
        '{"id":"x","choices":"nope"}',
        '{"id":"x","choices":[42]}',
        '{"id":"x","choices":[{"delta":"hi"}]}',
        '{"id":"x","choices":[{"delta":{"content":5}}]}',
        '{"id":"x","choices":[{"delta":{"role":["assistant"]}}]}',
        '{"id":{"a":1},"choices":[{"delta":{}}]}',
    ],
)
def test_malformed_payloads_raise_frame_parse_error(payload):
    with pytest.raises(FrameParseError):
        transcode(payload)


def test_delta_event_is_immutable():
    event = DeltaEvent(id="x", delta=DeltaFragment(content="a"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.id = "y"


def test_format_delta_frame():
    frame = format_delta(DeltaEvent(id="x", delta=DeltaFragment(content="Hi")))
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert orjson.loads(frame[6:]) == {"id": "x", "delta": {"content": "Hi"}}


def test_format_error_frame():
    assert format_error("rate limited") == 'data: {"error":{"message":"rate limited"}}\n\n'


def test_format_done_frame():
    assert format_done() == "data: [DONE]\n\n"
