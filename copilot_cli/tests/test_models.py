import pytest

from copilot_cli.domain.models import ChatRequest, Conversation, LocationHint, Message


def test_conversation_from_graph_payload():
    payload = {
        "id": "0d110e7e-2b7e-4270-a899-fd2af6fde333",
        "displayName": "hello",
        "state": "active",
        "turnCount": 1,
        "messages": [
            {
                "@odata.type": "#microsoft.graph.copilotConversationRequestMessage",
                "id": "m1",
                "text": "hello",
                "createdDateTime": "2025-09-30T15:28:46.1560062Z",
            },
            {
                "@odata.type": "#microsoft.graph.copilotConversationResponseMessage",
                "id": "m2",
                "text": "Hi! How can I help?",
            },
        ],
    }
    conv = Conversation.from_payload(payload)
    assert conv.id == payload["id"]
    assert conv.turn_count == 1
    assert [m.role for m in conv.messages] == ["user", "assistant"]
    assert conv.latest_message.text == "Hi! How can I help?"
    assert conv.messages[0].created_at == "2025-09-30T15:28:46.1560062Z"


def test_conversation_without_messages():
    conv = Conversation.from_payload({"id": "c1"})
    assert conv.messages == []
    assert conv.latest_message is None


def test_conversation_rejects_non_object():
    with pytest.raises(ValueError):
        Conversation.from_payload(["not", "a", "conversation"])


def test_message_explicit_role():
    assert Message.from_payload({"text": "x", "role": "Assistant"}).role == "assistant"
    assert Message.from_payload({"text": "x"}).role is None


def test_chat_request_payload():
    req = ChatRequest(text="What's on my calendar?", location_hint=LocationHint(time_zone="Asia/Shanghai"))
    assert req.to_payload() == {
        "message": {"text": "What's on my calendar?"},
        "locationHint": {"timeZone": "Asia/Shanghai"},
    }
