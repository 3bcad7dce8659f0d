"""Chat assistant integration helpers."""

from __future__ import annotations

from docbuilder.chat.responses import (
    ChatResponse,
    ChatResponseError,
    ChatServiceError,
    extract_json_object,
    parse_chat_response,
    section_progress,
)

__all__ = [
    "ChatResponse",
    "ChatResponseError",
    "ChatServiceError",
    "extract_json_object",
    "parse_chat_response",
    "section_progress",
]
