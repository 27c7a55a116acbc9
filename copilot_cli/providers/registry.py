"""Copilot API 与 MSAL 的静态配置。

可被用户覆盖的部分（client_id、base_url、超时等）在 settings 中；
这里集中放置不随环境变化的常量：所需 scope 与接口路径。"""

from dataclasses import dataclass
from typing import Tuple


GRAPH_RESOURCE = "https://graph.microsoft.com"


@dataclass(frozen=True)
class CopilotApiConfig:
    """Copilot 会话接口的路径与所需权限。"""

    conversations_path: str
    chat_path: str
    stream_path: str
    permissions: Tuple[str, ...]

    @property
    def scopes(self) -> Tuple[str, ...]:
        """MSAL 请求 token 时使用的完整 scope。"""

        return tuple(f"{GRAPH_RESOURCE}/{p}" for p in self.permissions)

    def chat_url(self, base_url: str, conversation_id: str) -> str:
        return f"{base_url}{self.conversations_path}/{conversation_id}{self.chat_path}"

    def stream_url(self, base_url: str, conversation_id: str) -> str:
        return f"{base_url}{self.conversations_path}/{conversation_id}{self.stream_path}"


COPILOT_API = CopilotApiConfig(
    conversations_path="/copilot/conversations",
    chat_path="/chat",
    stream_path="/chatOverStream",
    permissions=(
        "Sites.Read.All",
        "Mail.Read",
        "People.Read.All",
        "OnlineMeetingTranscript.Read.All",
        "Chat.Read",
        "ChannelMessage.Read.All",
        "ExternalItem.Read.All",
    ),
)