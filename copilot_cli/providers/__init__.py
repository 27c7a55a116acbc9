"""认证与 Copilot API 集成层。

该包下的模块负责：
- 定义 TokenProvider / CopilotApi 抽象接口 (base)。
- 维护接口路径、scope 等静态配置 (registry)。
- 提供 MSAL 认证 (auth_provider) 与 HTTP 客户端 (copilot_client) 的具体实现。
"""

import threading
from typing import Optional

from copilot_cli.config.settings import settings
from copilot_cli.providers.auth_provider import MsalAuthProvider
from copilot_cli.providers.base import CopilotApi, TokenProvider
from copilot_cli.providers.copilot_client import CopilotClient


_auth_provider: Optional[MsalAuthProvider] = None
_auth_lock = threading.Lock()


def get_default_auth_provider() -> MsalAuthProvider:
    """获取进程级共享的 MsalAuthProvider（单例，首次创建加锁）。"""

    global _auth_provider
    if _auth_provider is None:
        with _auth_lock:
            if _auth_provider is None:
                _auth_provider = MsalAuthProvider(settings)
    return _auth_provider


def create_copilot_client(token_provider: Optional[TokenProvider] = None) -> CopilotApi:
    """创建 CopilotClient，默认使用共享的认证 provider。"""

    return CopilotClient(token_provider or get_default_auth_provider(), settings)


__all__ = [
    "CopilotApi",
    "CopilotClient",
    "MsalAuthProvider",
    "TokenProvider",
    "create_copilot_client",
    "get_default_auth_provider",
]
