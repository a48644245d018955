"""Tests for the line-oriented frame decoder."""

import json

import pytest

from copilot_stream.stream.accumulator import MessageAccumulator
from copilot_stream.stream.decoder import FrameDecoder, FrameKind, classify_line
from copilot_stream.stream.interpreter import Action, FrameInterpreter
from copilot_stream.transcript import Transcript


def _data(content: str) -> str:
    payload = {"choices": [{"delta": {"content": content}}]}
    return "data: " + json.dumps(payload, ensure_ascii=False)


# A realistic stream: keep-alive, role-only first chunk, CRLF line endings,
# blank separators and multi-byte text
REFERENCE_STREAM = (
    ": keep-alive\n"
    'data: {"choices":[{"delta":{"role":"assistant"}}]}\n'
    "\n"
    + _data("Bonjour") + "\r\n"
    "\r\n"
    + _data(" élève — 😀") + "\n"
    "\n"
    "data: [DONE]\n"
).encode("utf-8")

REFERENCE_CONTENT = "Bonjour élève — 😀"


def _assemble(chunks: list[bytes]) -> str:
    """Run decoder -> interpreter -> accumulator over *chunks*."""
    transcript = Transcript()
    transcript.add_user("question")
    decoder = FrameDecoder()
    interpreter = FrameInterpreter()
    accumulator = MessageAccumulator(transcript)

    for chunk in chunks:
        decoder.feed(chunk)
        for frame in decoder.frames():
            result = interpreter.interpret(frame)
            if result.action is Action.INCOMPLETE:
                decoder.unread(result.text)
                break
            if result.action is Action.DELTA:
                accumulator.apply(result.text)
        if interpreter.finished:
            break
    else:
        for frame in decoder.flush():
            result = interpreter.interpret_final(frame)
            if result.action is Action.DONE:
                break
            if result.action is Action.DELTA:
                accumulator.apply(result.text)

    accumulator.finish()
    return transcript.turns[-1].content


class TestClassifyLine:
    def test_data_line(self):
        assert classify_line('data: {"a": 1}') == (FrameKind.DATA, '{"a": 1}')

    def test_carriage_return_stripped(self):
        assert classify_line("data: x\r") == (FrameKind.DATA, "x")

    def test_comment(self):
        assert classify_line(": keep-alive")[0] is FrameKind.COMMENT

    def test_blank(self):
        assert classify_line("")[0] is FrameKind.BLANK
        assert classify_line("   \r")[0] is FrameKind.BLANK

    def test_other_fields_not_data(self):
        assert classify_line("event: message")[0] is FrameKind.OTHER
        assert classify_line("id: 3")[0] is FrameKind.OTHER

    def test_prefix_requires_space(self):
        assert classify_line("data:x")[0] is FrameKind.OTHER


class TestFrameDecoder:
    def test_partial_line_is_buffered(self):
        decoder = FrameDecoder()
        decoder.feed('data: {"a"')
        assert list(decoder.frames()) == []
        assert decoder.pending == 'data: {"a"'

        decoder.feed(":1}\n")
        assert list(decoder.frames()) == ['{"a":1}']
        assert decoder.pending == ""

    def test_noise_lines_discarded(self):
        decoder = FrameDecoder()
        decoder.feed(": ping\n\nevent: message\nid: 3\ndata: x\n")
        assert list(decoder.frames()) == ["x"]

    def test_split_inside_data_prefix(self):
        decoder = FrameDecoder()
        decoder.feed("da")
        assert list(decoder.frames()) == []
        decoder.feed("ta: y\n")
        assert list(decoder.frames()) == ["y"]

    def test_split_between_cr_and_lf(self):
        decoder = FrameDecoder()
        decoder.feed("data: x\r")
        assert list(decoder.frames()) == []
        decoder.feed("\n")
        assert list(decoder.frames()) == ["x"]

    def test_split_inside_multibyte_character(self):
        encoded = "data: é\n".encode("utf-8")
        decoder = FrameDecoder()
        decoder.feed(encoded[:7])
        assert list(decoder.frames()) == []
        decoder.feed(encoded[7:])
        assert list(decoder.frames()) == ["é"]

    def test_frames_are_pulled_lazily(self):
        decoder = FrameDecoder()
        decoder.feed("data: a\ndata: b\n")
        frames = decoder.frames()
        assert next(frames) == "a"
        assert decoder.pending == "data: b\n"

    def test_unread_puts_payload_back_first(self):
        decoder = FrameDecoder()
        decoder.feed("data: c\n")
        decoder.unread("{partial")
        assert list(decoder.frames()) == ["{partial", "c"]

    def test_flush_yields_unterminated_line(self):
        decoder = FrameDecoder()
        decoder.feed("data: first\ndata: tail")
        assert list(decoder.frames()) == ["first"]
        assert list(decoder.flush()) == ["tail"]
        assert decoder.pending == ""

    def test_flush_replaces_truncated_multibyte(self):
        decoder = FrameDecoder()
        decoder.feed(b"data: \xc3")
        assert list(decoder.flush()) == ["\ufffd"]

    def test_flush_skips_noise(self):
        decoder = FrameDecoder()
        decoder.feed(": comment\n\r\nnot-data")
        assert list(decoder.flush()) == []


class TestChunkBoundaryIndependence:
    def test_single_chunk(self):
        assert _assemble([REFERENCE_STREAM]) == REFERENCE_CONTENT

    def test_every_two_way_split(self):
        for i in range(1, len(REFERENCE_STREAM)):
            chunks = [REFERENCE_STREAM[:i], REFERENCE_STREAM[i:]]
            assert _assemble(chunks) == REFERENCE_CONTENT, f"split at {i}"

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 13, 64])
    def test_fixed_size_chunks(self, size: int):
        chunks = [
            REFERENCE_STREAM[i:i + size]
            for i in range(0, len(REFERENCE_STREAM), size)
        ]
        assert _assemble(chunks) == REFERENCE_CONTENT

    def test_bytes_after_sentinel_ignored(self):
        stream = REFERENCE_STREAM + _data("ignored").encode() + b"\n"
        assert _assemble([stream]) == REFERENCE_CONTENT
