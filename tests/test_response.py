import json
from types import SimpleNamespace

from text_refinery.llm.response import ResponseShape, resolve_response, response_text


def test_messages_api_object():
    msg = SimpleNamespace(content=[
        SimpleNamespace(type="text", text="Edited "),
        SimpleNamespace(type="text", text="chunk."),
    ])
    res = resolve_response(msg)
    assert res.shape == ResponseShape.CONTENT_BLOCKS
    assert res.text == "Edited chunk."


def test_messages_api_dict_skips_non_text_blocks():
    resp = {"content": [{"type": "tool_use", "id": "x"}, {"type": "text", "text": "Body"}]}
    assert resolve_response(resp).text == "Body"


def test_chat_completion_envelope():
    resp = {"choices": [{"message": {"role": "assistant", "content": "  Edited text\n"}}]}
    res = resolve_response(resp)
    assert res.shape == ResponseShape.CHAT_MESSAGE
    assert res.text == "  Edited text\n"


def test_text_completion_envelope():
    res = resolve_response({"choices": [{"text": "plain completion"}]})
    assert res.shape == ResponseShape.TEXT_COMPLETION
    assert res.text == "plain completion"


def test_plain_string_and_none():
    assert resolve_response("just text").shape == ResponseShape.PLAIN_TEXT
    assert response_text("just text") == "just text"
    assert resolve_response(None).shape == ResponseShape.EMPTY
    assert response_text(None) == ""


def test_empty_chat_content_falls_through():
    resp = {"choices": [{"message": {"content": ""}}]}
    res = resolve_response(resp)
    assert res.shape == ResponseShape.FALLBACK
    assert json.loads(res.text) == resp


def test_unrecognized_shape_is_serialized():
    res = resolve_response({"error": {"message": "overloaded"}})
    assert res.shape == ResponseShape.FALLBACK
    assert json.loads(res.text) == {"error": {"message": "overloaded"}}


def test_unserializable_object_never_raises():
    class Opaque:
        def __str__(self):
            return "opaque-response"

    res = resolve_response(Opaque())
    assert res.shape == ResponseShape.FALLBACK
    assert "opaque-response" in res.text
