import threading

import pytest

from copilot_cli.api.service import (
    NonStreamingResponder,
    OneShotRunner,
    RunState,
    StreamingResponder,
    select_responder,
)
from copilot_cli.domain.exceptions import AuthError, ConversationError, InvalidInputError, NetworkError
from copilot_cli.domain.models import Conversation


class TokenStub:
    def __init__(self, error=None):
        self.calls = 0
        self._error = error

    def get_token(self):
        self.calls += 1
        if self._error:
            raise self._error
        return "tok"


class ApiStub:
    def __init__(self, conversation_id="c1", reply=None, chunks=None):
        self.conversation_id = conversation_id
        self.reply = reply or {"id": "c1", "messages": []}
        self.chunks = chunks or []
        self.calls = []

    def create_conversation(self):
        self.calls.append("create")
        return Conversation.from_payload({"id": self.conversation_id} if self.conversation_id else {})

    def send_message(self, conversation_id, text, time_zone=None):
        self.calls.append(("send", conversation_id, text, time_zone))
        return Conversation.from_payload(self.reply)

    def stream_message(self, conversation_id, text, time_zone=None):
        self.calls.append(("stream", conversation_id, text, time_zone))
        for chunk in self.chunks:
            self.calls.append(("chunk", chunk))
            yield chunk


def test_non_streaming_emits_last_message():
    api = ApiStub(reply={"id": "c1", "messages": ["hi", "how can I help?"]})
    runner = OneShotRunner(TokenStub(), api)
    assert list(runner.run("hi")) == ["how can I help?"]
    assert runner.state == RunState.DONE
    assert api.calls == ["create", ("send", "c1", "hi", None)]


def test_non_streaming_without_messages_emits_nothing():
    runner = OneShotRunner(TokenStub(), ApiStub(reply={"id": "c1", "messages": []}))
    assert list(runner.run("hi")) == []
    assert runner.state == RunState.DONE


def test_streaming_emits_each_snapshot_in_order():
    frame1 = b'data: {"messages":["hi"]}\n\n'
    frame2 = b'data: {"messages":["hi","on it"]}\n\n'
    api = ApiStub(chunks=[frame1, frame2])
    runner = OneShotRunner(TokenStub(), api, time_zone="UTC")
    gen = runner.run("hi", stream=True)

    assert next(gen) == "hi"
    assert runner.state == RunState.STREAMING
    # the second frame has not been read yet
    assert ("chunk", frame2) not in api.calls
    assert next(gen) == "on it"
    with pytest.raises(StopIteration):
        next(gen)
    assert runner.state == RunState.DONE
    assert ("stream", "c1", "hi", "UTC") in api.calls


def test_streaming_skips_empty_and_undecodable_frames():
    chunks = [b"event: ping\n\n", b"data: not json\n\n", b'data: {"messages":[]}\n\n', b'data: {"messages":["ok"]}']
    runner = OneShotRunner(TokenStub(), ApiStub(chunks=chunks))
    assert list(runner.run("hi", stream=True)) == ["ok"]


def test_streaming_survives_deeply_nested_frame():
    nested = ("[" * 100000 + "]" * 100000).encode("ascii")
    chunks = [b'data: {"messages":["hi"]}\n\n', b"data: " + nested + b"\n\n", b'data: {"messages":["hi","on it"]}\n\n']
    runner = OneShotRunner(TokenStub(), ApiStub(chunks=chunks))
    assert list(runner.run("hi", stream=True)) == ["hi", "on it"]
    assert runner.state == RunState.DONE


def test_interrupt_mid_stream_marks_run_failed():
    class InterruptedApi(ApiStub):
        def stream_message(self, conversation_id, text, time_zone=None):
            yield b'data: {"messages":["partial"]}\n\n'
            raise KeyboardInterrupt

    runner = OneShotRunner(TokenStub(), InterruptedApi())
    received = []
    with pytest.raises(KeyboardInterrupt):
        for text in runner.run("hi", stream=True):
            received.append(text)
    assert received == ["partial"]
    assert runner.state == RunState.FAILED


def test_closing_run_early_is_not_a_failure():
    chunks = [b'data: {"messages":["one"]}\n\n', b'data: {"messages":["one","two"]}\n\n']
    runner = OneShotRunner(TokenStub(), ApiStub(chunks=chunks))
    gen = runner.run("hi", stream=True)
    assert next(gen) == "one"
    gen.close()
    assert runner.state == RunState.STREAMING


def test_streaming_honours_cancellation():
    cancel = threading.Event()
    chunks = [b'data: {"messages":["one"]}\n\n', b'data: {"messages":["one","two"]}\n\n']
    runner = OneShotRunner(TokenStub(), ApiStub(chunks=chunks))
    received = []
    for text in runner.run("hi", stream=True, cancel_event=cancel):
        received.append(text)
        cancel.set()
    assert received == ["one"]


@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
def test_blank_query_never_reaches_network(query):
    token, api = TokenStub(), ApiStub()
    runner = OneShotRunner(token, api)
    with pytest.raises(InvalidInputError) as info:
        list(runner.run(query))
    assert info.value.exit_code == 4
    assert token.calls == 0
    assert api.calls == []
    assert runner.state == RunState.FAILED


def test_missing_conversation_id_stops_before_submission():
    api = ApiStub(conversation_id=None)
    runner = OneShotRunner(TokenStub(), api)
    with pytest.raises(ConversationError) as info:
        list(runner.run("hi"))
    assert info.value.message == "Failed to create conversation"
    assert api.calls == ["create"]
    assert runner.state == RunState.FAILED


def test_auth_failure_before_conversation():
    api = ApiStub()
    runner = OneShotRunner(TokenStub(error=AuthError(code="NOT_AUTHENTICATED", message="login")), api)
    with pytest.raises(AuthError):
        list(runner.run("hi"))
    assert api.calls == []


def test_transport_failure_mid_stream_propagates():
    class FailingApi(ApiStub):
        def stream_message(self, conversation_id, text, time_zone=None):
            yield b'data: {"messages":["partial"]}\n\n'
            raise NetworkError(code="NETWORK_ERROR", message="Network error: reset")

    runner = OneShotRunner(TokenStub(), FailingApi())
    received = []
    with pytest.raises(NetworkError):
        for text in runner.run("hi", stream=True):
            received.append(text)
    assert received == ["partial"]
    assert runner.state == RunState.FAILED


def test_execute_passes_text_to_emit():
    api = ApiStub(reply={"id": "c1", "messages": [{"text": "done"}]})
    out = []
    OneShotRunner(TokenStub(), api).execute("hi", out.append)
    assert out == ["done"]


def test_select_responder():
    assert isinstance(select_responder(True), StreamingResponder)
    assert isinstance(select_responder(False), NonStreamingResponder)
