"""Copilot 会话相关的统一数据模型。

本模块定义了 CLI 内部共享的标准数据结构：

- Message: 会话中的一条消息（用户提问或 Copilot 回复）。
- Conversation: 服务端会话快照，包含按顺序排列的消息列表。
- SseEvent: SSE 流中解析出的一个事件帧。
- ChatRequest: 发给 Copilot chat 接口的请求体（消息文本 + 位置提示）。

Graph API 返回的 JSON 字段大小写并不稳定，解析时统一按不区分大小写匹配。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional


Role = Literal["user", "assistant"]

_ROLE_BY_ODATA_SUFFIX = {
    "requestmessage": "user",
    "responsemessage": "assistant",
}


def _lookup(data: Mapping[str, Any], name: str) -> Any:
    """按不区分大小写的字段名读取值，找不到时返回 None。"""

    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Message:
    """一条会话消息。

    - id: 服务端消息 ID。
    - text: 消息文本，服务端可能省略。
    - role: "user" / "assistant"，无法判断时为 None。
    - created_at: 服务端返回的原始时间字符串。
    """

    text: Optional[str]
    id: Optional[str] = None
    role: Optional[Role] = None
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Message":
        """将单条消息 JSON 转换为 Message。

        简化格式下消息可能直接是字符串，此时视为只有 text 的消息。
        """

        if isinstance(payload, str):
            return cls(text=payload)
        if not isinstance(payload, Mapping):
            raise ValueError(f"Unexpected message payload: {type(payload).__name__}")
        return cls(
            text=_as_optional_str(_lookup(payload, "text")),
            id=_as_optional_str(_lookup(payload, "id")),
            role=cls._resolve_role(payload),
            created_at=_as_optional_str(_lookup(payload, "createdDateTime")),
        )

    @staticmethod
    def _resolve_role(payload: Mapping[str, Any]) -> Optional[Role]:
        explicit = _lookup(payload, "role") or _lookup(payload, "author")
        if isinstance(explicit, str) and explicit.lower() in ("user", "assistant"):
            return explicit.lower()  # type: ignore[return-value]
        odata_type = _lookup(payload, "@odata.type")
        if isinstance(odata_type, str):
            lowered = odata_type.lower()
            for suffix, role in _ROLE_BY_ODATA_SUFFIX.items():
                if lowered.endswith(suffix):
                    return role  # type: ignore[return-value]
        return None


@dataclass(frozen=True)
class Conversation:
    """服务端会话快照。

    messages 只追加不修改，最后一个元素即最新消息。
    raw 保留原始 JSON，便于调试与日志记录。
    """

    id: Optional[str]
    messages: List[Message] = field(default_factory=list)
    display_name: Optional[str] = None
    state: Optional[str] = None
    turn_count: Optional[int] = None
    raw: Optional[dict] = None

    @property
    def latest_message(self) -> Optional[Message]:
        if not self.messages:
            return None
        return self.messages[-1]

    @classmethod
    def from_payload(cls, payload: Any) -> "Conversation":
        """将 Graph 返回的 copilotConversation JSON 解析为 Conversation。

        payload 不是对象时抛出 ValueError，由调用方决定如何处理。
        """

        if not isinstance(payload, Mapping):
            raise ValueError(f"Unexpected conversation payload: {type(payload).__name__}")
        raw_messages = _lookup(payload, "messages")
        messages: List[Message] = []
        if isinstance(raw_messages, list):
            messages = [Message.from_payload(item) for item in raw_messages]
        turn_count = _lookup(payload, "turnCount")
        return cls(
            id=_as_optional_str(_lookup(payload, "id")),
            messages=messages,
            display_name=_as_optional_str(_lookup(payload, "displayName")),
            state=_as_optional_str(_lookup(payload, "state")),
            turn_count=turn_count if isinstance(turn_count, int) else None,
            raw=dict(payload),
        )


@dataclass(frozen=True)
class SseEvent:
    """SSE 流中的一个完整事件帧。"""

    data: str
    event: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class LocationHint:
    """请求中的位置提示，time_zone 为 IANA 时区名（如 "Asia/Shanghai"）。"""

    time_zone: str


@dataclass(frozen=True)
class ChatRequest:
    """一次 chat / chatOverStream 请求。"""

    text: str
    location_hint: LocationHint

    def to_payload(self) -> Dict[str, Any]:
        """转换为 Graph API 所需的请求 JSON。"""

        return {
            "message": {"text": self.text},
            "locationHint": {"timeZone": self.location_hint.time_zone},
        }
