"""Streaming response handling: SSE framing and snapshot text extraction."""

from .extractor import extract_message_text
from .sse import SseDecoder, iter_sse_events

__all__ = ["SseDecoder", "extract_message_text", "iter_sse_events"]
