"""从 SSE 事件负载中提取可展示文本。

chatOverStream 每个事件携带的是完整的会话快照而不是增量，
因此只需取快照中最后一条消息的文本。单个损坏的帧不能中断整个流，
解析失败一律视为“没有可展示的内容”。
"""

import json
from typing import Optional

from copilot_cli.domain.models import Conversation
from copilot_cli.infrastructure.logging.logger import logger


def extract_message_text(payload: str) -> Optional[str]:
    """返回会话快照中最后一条消息的文本，无法提取时返回 None。"""

    try:
        data = json.loads(payload)
        conversation = Conversation.from_payload(data)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"Skipping undecodable stream payload: {e}")
        return None
    latest = conversation.latest_message
    if latest is None:
        return None
    return latest.text
