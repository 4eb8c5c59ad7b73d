from __future__ import annotations

import json

import pytest

from difystream import DifyStreamError, ErrorKind, StreamSettings, convert_completion


def _payload(answer: str) -> dict:
    return {
        "event": "message",
        "id": "resp1",
        "answer": answer,
        "task_id": "task1",
        "conversation_id": "conv1",
        "message_id": "msg1",
        "created_at": 1705395332,
        "metadata": {"usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12, "currency": "USD"}},
    }


def test_splits_reasoning_text_and_tool_calls(sequential_ids) -> None:
    answer = '<think>plan it</think>Answer {"name":"lookup","arguments":{"q":"x"}}'
    result = convert_completion(_payload(answer), ["lookup"], id_generator=sequential_ids)

    assert result.content[0] == {"type": "reasoning", "text": "plan it"}
    assert result.content[1] == {"type": "text", "text": "Answer"}
    assert result.content[2]["type"] == "tool_call"
    call = result.tool_calls[0]
    assert (call.id, call.name, call.input) == ("call_1", "lookup", '{"q":"x"}')
    assert result.finish_reason == "tool-calls"


def test_plain_answer_with_usage_and_ids() -> None:
    result = convert_completion(_payload("  Hello there  "))
    assert result.content == [{"type": "text", "text": "Hello there"}]
    assert result.text == "Hello there"
    assert result.reasoning == ""
    assert result.finish_reason == "stop"
    assert result.usage.as_dict() == {"input_tokens": 5, "output_tokens": 7, "total_tokens": 12}
    assert result.ids.as_dict() == {"conversation_id": "conv1", "message_id": "msg1", "task_id": "task1"}
    assert result.response_id == "resp1"


def test_unterminated_reasoning_is_kept() -> None:
    result = convert_completion(_payload("<think>still thinking"))
    assert result.content == [{"type": "reasoning", "text": "still thinking"}]


def test_custom_tags_from_settings() -> None:
    settings = StreamSettings(open_tag="<reason>", close_tag="</reason>")
    result = convert_completion(_payload("<reason>why</reason>done"), settings=settings)
    assert (result.reasoning, result.text) == ("why", "done")


def test_accepts_json_text() -> None:
    result = convert_completion(json.dumps(_payload("hi")))
    assert result.text == "hi"


def test_invalid_payload_raises_decode_error() -> None:
    payload = _payload("hi")
    del payload["metadata"]
    with pytest.raises(DifyStreamError) as exc_info:
        convert_completion(payload)
    assert exc_info.value.kind == ErrorKind.DECODE
    assert exc_info.value.cause is not None

    with pytest.raises(DifyStreamError):
        convert_completion("not json")
