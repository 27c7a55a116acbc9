"""Provider 抽象接口。

上层编排逻辑（OneShotRunner）不直接依赖 MSAL 或 httpx，而是依赖以下协议：

- TokenProvider: 按需提供一个有效的 bearer token。
- CopilotApi: Copilot 会话接口的三个远程操作。

测试中可以用简单的桩对象替换任一实现。
"""

from typing import Iterator, Optional, Protocol

from copilot_cli.domain.models import Conversation


class TokenProvider(Protocol):
    """Bearer token 提供方。

    get_token 要么返回有效 token，要么抛出 AuthError。
    """

    def get_token(self) -> str:
        ...


class CopilotApi(Protocol):
    """Copilot 会话接口协议。"""

    def create_conversation(self) -> Conversation:
        ...

    def send_message(
        self, conversation_id: str, text: str, time_zone: Optional[str] = None
    ) -> Conversation:
        """非流式发送消息，返回追加了回复的完整会话。"""

        ...

    def stream_message(
        self, conversation_id: str, text: str, time_zone: Optional[str] = None
    ) -> Iterator[bytes]:
        """流式发送消息，在 HTTP 响应打开期间逐块产出原始 SSE 字节。"""

        ...
