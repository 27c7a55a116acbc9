"""一次性问答（one-shot）编排服务。

流程：校验输入 -> 获取 token -> 创建会话 -> 发送消息（流式/非流式）-> 输出文本。
流式与非流式分别由一个 Responder 实现，在入口处选定一次。
"""

import threading
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol

from copilot_cli.domain.exceptions import ConversationError, InvalidInputError
from copilot_cli.infrastructure.logging.logger import logger
from copilot_cli.providers.base import CopilotApi, TokenProvider
from copilot_cli.streaming import extract_message_text, iter_sse_events


class RunState(str, Enum):
    IDLE = "idle"
    TOKEN_ACQUIRED = "token_acquired"
    CONVERSATION_CREATED = "conversation_created"
    STREAMING = "streaming"
    NON_STREAMING = "non_streaming"
    DONE = "done"
    FAILED = "failed"


class Responder(Protocol):
    """把一条消息发送到已创建的会话，并产出要展示的文本。"""

    state: RunState

    def respond(
        self,
        client: CopilotApi,
        conversation_id: str,
        text: str,
        time_zone: Optional[str],
        cancel_event: Optional[threading.Event],
    ) -> Iterator[str]:
        ...


class NonStreamingResponder:
    state = RunState.NON_STREAMING

    def respond(self, client, conversation_id, text, time_zone, cancel_event) -> Iterator[str]:
        conversation = client.send_message(conversation_id, text, time_zone)
        latest = conversation.latest_message
        # 会话没有消息时不输出任何内容
        if latest is not None and latest.text is not None:
            yield latest.text


class StreamingResponder:
    state = RunState.STREAMING

    def respond(self, client, conversation_id, text, time_zone, cancel_event) -> Iterator[str]:
        chunks = client.stream_message(conversation_id, text, time_zone)
        for event in iter_sse_events(chunks, cancel_event=cancel_event):
            if not event.data:
                continue
            message_text = extract_message_text(event.data)
            if message_text:
                yield message_text


def select_responder(stream: bool) -> Responder:
    return StreamingResponder() if stream else NonStreamingResponder()


class OneShotRunner:
    """一次性问答的编排器。

    - token_provider: 提供 bearer token，未登录时抛出 AuthError。
    - client: Copilot 会话接口。
    - time_zone: 可选的 IANA 时区，None 时由 client 自行解析本机时区。

    每次 run 都从 IDLE 开始，任意步骤失败（包括 Ctrl-C）都会进入 FAILED
    并原样抛出异常，编排器本身不做重试。
    """

    def __init__(self, token_provider: TokenProvider, client: CopilotApi, time_zone: Optional[str] = None):
        self._token_provider = token_provider
        self._client = client
        self._time_zone = time_zone
        self.state = RunState.IDLE

    def run(
        self,
        query: str,
        stream: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[str]:
        """执行一次问答，按到达顺序逐条产出要展示的文本。"""

        self.state = RunState.IDLE
        responder = select_responder(stream)
        try:
            if not query or not query.strip():
                raise InvalidInputError(code="EMPTY_MESSAGE", message="Message cannot be empty")

            self._token_provider.get_token()
            self.state = RunState.TOKEN_ACQUIRED

            conversation = self._client.create_conversation()
            if not conversation.id:
                raise ConversationError(code="CONVERSATION_CREATE_FAILED", message="Failed to create conversation")
            self.state = RunState.CONVERSATION_CREATED

            self.state = responder.state
            emitted = 0
            for text in responder.respond(self._client, conversation.id, query, self._time_zone, cancel_event):
                emitted += 1
                yield text
            self.state = RunState.DONE
            logger.info(
                "One-shot query completed",
                extra={"extra": {"conversation_id": conversation.id, "stream": stream, "emitted": emitted}},
            )
        except GeneratorExit:
            # 调用方提前关闭生成器，不算失败
            raise
        except BaseException as e:
            self.state = RunState.FAILED
            reason = str(e) or type(e).__name__
            logger.error(f"One-shot query failed: {reason}", extra={"extra": {"stream": stream, "error": reason}})
            raise

    def execute(
        self,
        query: str,
        emit: Callable[[str], None],
        stream: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """执行一次问答，并把每条文本交给 emit（通常是写 stdout）。"""

        for text in self.run(query, stream=stream, cancel_event=cancel_event):
            emit(text)
