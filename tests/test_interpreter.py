"""Tests for the data-frame payload interpreter."""

from copilot_stream.stream.interpreter import (
    Action,
    FrameInterpreter,
    Interpretation,
    extract_delta,
)


class TestExtractDelta:
    def test_content_path(self):
        assert extract_delta({"choices": [{"delta": {"content": "hi"}}]}) == "hi"

    def test_missing_parts(self):
        assert extract_delta({}) is None
        assert extract_delta({"choices": []}) is None
        assert extract_delta({"choices": [{}]}) is None
        assert extract_delta({"choices": [{"delta": {"role": "assistant"}}]}) is None

    def test_wrong_shapes(self):
        assert extract_delta(42) is None
        assert extract_delta([1, 2]) is None
        assert extract_delta({"choices": "nope"}) is None
        assert extract_delta({"choices": [{"delta": {"content": None}}]}) is None
        assert extract_delta({"choices": [{"delta": {"content": 3}}]}) is None


class TestFrameInterpreter:
    def test_delta(self):
        interp = FrameInterpreter()
        result = interp.interpret('{"choices":[{"delta":{"content":"Hel"}}]}')
        assert result == Interpretation.delta("Hel")

    def test_sentinel_is_trimmed(self):
        interp = FrameInterpreter()
        assert interp.interpret(" [DONE] ").action is Action.DONE
        assert interp.finished

    def test_nothing_interpreted_after_sentinel(self):
        interp = FrameInterpreter()
        interp.interpret("[DONE]")
        result = interp.interpret('{"choices":[{"delta":{"content":"late"}}]}')
        assert result.action is Action.SKIP

    def test_unparseable_payload_is_incomplete(self):
        interp = FrameInterpreter()
        payload = '{"choices":[{"delta":{"content":"Hel'
        result = interp.interpret(payload)
        assert result.action is Action.INCOMPLETE
        assert result.text == payload
        assert not interp.finished

    def test_payload_without_delta_skipped(self):
        interp = FrameInterpreter()
        assert interp.interpret('{"choices":[{"delta":{"role":"assistant"}}]}').action is Action.SKIP
        assert interp.interpret('{"choices":[{"delta":{"content":""}}]}').action is Action.SKIP
        assert interp.interpret("null").action is Action.SKIP

    def test_final_drops_unparseable(self):
        interp = FrameInterpreter()
        assert interp.interpret_final('{"choices":[').action is Action.SKIP

    def test_final_still_yields_deltas(self):
        interp = FrameInterpreter()
        result = interp.interpret_final('{"choices":[{"delta":{"content":"x"}}]}')
        assert result == Interpretation.delta("x")
