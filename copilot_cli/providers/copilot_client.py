"""Microsoft 365 Copilot 会话接口适配器。

本模块负责：

1. 通过 TokenProvider 获取 bearer token 并构造请求头。
2. 将 ChatRequest 转换为 Graph API 的请求 JSON（含 locationHint 时区）。
3. 调用 HTTP 接口并把网络/API 异常映射为统一的业务异常：
   401 -> AuthError，403 -> PermissionDeniedError，其他非 2xx -> ApiError，
   传输层错误 -> NetworkError。
4. 将响应 JSON 解析为 Conversation；流式接口则在响应打开期间逐块产出字节。
"""

from typing import Any, Iterator, Optional

import httpx

from copilot_cli.config.settings import settings
from copilot_cli.config.timezone import resolve_time_zone
from copilot_cli.domain.exceptions import (
    ApiError,
    AuthError,
    ConversationError,
    NetworkError,
    PermissionDeniedError,
)
from copilot_cli.domain.models import ChatRequest, Conversation, LocationHint
from copilot_cli.infrastructure.logging.logger import logger
from copilot_cli.providers.base import TokenProvider
from copilot_cli.providers.registry import COPILOT_API


class CopilotClient:
    """Copilot 会话接口客户端实现。

    - create_conversation: 创建新会话。
    - send_message: 非流式发送消息，返回更新后的会话。
    - stream_message: 流式发送消息，返回 SSE 原始字节块的生成器。
    """

    name = "copilot"

    def __init__(self, token_provider: TokenProvider, cfg=settings):
        self._token_provider = token_provider
        self._settings = cfg

    def create_conversation(self) -> Conversation:
        url = f"{self._base_url}{COPILOT_API.conversations_path}"
        data = self._post_json(url, {})
        conversation = self._parse_conversation(data)
        logger.info("Conversation created", extra={"extra": {"conversation_id": conversation.id}})
        return conversation

    def send_message(self, conversation_id: str, text: str, time_zone: Optional[str] = None) -> Conversation:
        payload = self._build_payload(text, time_zone)
        data = self._post_json(COPILOT_API.chat_url(self._base_url, conversation_id), payload)
        return self._parse_conversation(data)

    def stream_message(self, conversation_id: str, text: str, time_zone: Optional[str] = None) -> Iterator[bytes]:
        """执行一次流式调用，逐块 yield 原始 SSE 字节。

        HTTP 连接在生成器被耗尽或关闭前一直保持打开。
        """

        payload = self._build_payload(text, time_zone)
        headers = self._headers()
        headers["Accept"] = "text/event-stream"
        timeout = httpx.Timeout(self._settings.http_timeout, read=self._settings.stream_read_timeout)
        url = COPILOT_API.stream_url(self._base_url, conversation_id)
        try:
            with httpx.Client(timeout=timeout) as client:
                with client.stream("POST", url, json=payload, headers=headers) as resp:
                    if resp.status_code >= 400:
                        resp.read()
                        self._raise_for_status(resp)
                    for chunk in resp.iter_bytes():
                        if chunk:
                            yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}")

    # ---- 内部实现 ----

    @property
    def _base_url(self) -> str:
        return self._settings.graph_base_url.rstrip("/")

    def _headers(self) -> dict:
        token = self._token_provider.get_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, text: str, time_zone: Optional[str]) -> dict:
        zone = resolve_time_zone(time_zone or getattr(self._settings, "time_zone", None))
        return ChatRequest(text=text, location_hint=LocationHint(time_zone=zone)).to_payload()

    def _post_json(self, url: str, payload: dict) -> Any:
        headers = self._headers()
        try:
            with httpx.Client(timeout=self._settings.http_timeout) as client:
                resp = client.post(url, json=payload, headers=headers)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}")
        if resp.status_code >= 400:
            self._raise_for_status(resp)
        try:
            return resp.json()
        except ValueError:
            raise ConversationError(code="INVALID_RESPONSE", message="Copilot returned a non-JSON response")

    @staticmethod
    def _raise_for_status(resp) -> None:
        status = resp.status_code
        if status == 401:
            raise AuthError(
                code="UNAUTHORIZED",
                message="Authentication failed: Token is invalid or expired",
                http_status=status,
            )
        if status == 403:
            raise PermissionDeniedError(
                code="FORBIDDEN",
                message="Forbidden: Insufficient permissions. Required permissions: "
                + ", ".join(COPILOT_API.permissions),
                http_status=status,
                scopes=list(COPILOT_API.permissions),
            )
        detail = _error_message(resp)
        if status >= 500:
            raise ApiError(
                code="SERVER_ERROR",
                message=f"Server error: {detail or 'An internal server error occurred'}",
                http_status=status,
            )
        raise ApiError(code="API_ERROR", message=detail or f"HTTP {status}", http_status=status)

    @staticmethod
    def _parse_conversation(data: Any) -> Conversation:
        try:
            return Conversation.from_payload(data)
        except ValueError as e:
            raise ConversationError(code="INVALID_RESPONSE", message=f"Unexpected response from Copilot: {e}")


def _error_message(resp) -> Optional[str]:
    """提取 Graph 错误体中的 error.message，失败时退回原始文本。"""

    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip() or None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return (resp.text or "").strip() or None
