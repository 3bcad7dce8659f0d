"""Parsing of chat assistant responses.

The assistant replies with a message for the user and, optionally, a batch of section
updates. Replies may arrive as a decoded dict or as raw model text that wraps the JSON in a
markdown code fence or surrounding prose.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docbuilder.logging import get_logger
from docbuilder.models.document import Section, SectionKey, SectionStatus, SectionUpdate

logger = get_logger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)


class ChatResponseError(ValueError):
    """Raised when an assistant reply cannot be understood."""

    pass


class ChatServiceError(Exception):
    """Raised when the chat service answered with an error payload."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class ChatResponse(BaseModel):
    """An assistant reply with optional section updates."""

    model_config = ConfigDict(populate_by_name=True)

    ai_message: str = Field(alias="aiMessage")
    section_updates: list[SectionUpdate] = Field(default_factory=list, alias="sectionUpdates")


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Pull the first JSON object out of model text.

    Tries a fenced code block first, then the first decodable ``{...}`` in the text.
    Returns ``None`` rather than raising when nothing parses.
    """

    if not text:
        return None

    cleaned = text.strip()
    m = _FENCE.search(cleaned)
    if m:
        cleaned = m.group(1).strip()

    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = cleaned.find("{", start + 1)

    logger.debug("extract_json_object: no JSON object found")
    return None


def _is_error_payload(data: Mapping[str, Any]) -> bool:
    return (
        isinstance(data.get("error"), str)
        and isinstance(data.get("code"), str)
        and "aiMessage" not in data
    )


def parse_chat_response(payload: str | Mapping[str, Any]) -> ChatResponse:
    """Validate an assistant reply.

    Raises:
        ChatServiceError: The payload is an ``{"error": ..., "code": ...}`` response.
        ChatResponseError: The payload is not a valid reply.
    """

    if isinstance(payload, str):
        data = extract_json_object(payload)
        if data is None:
            raise ChatResponseError("Assistant reply does not contain a JSON object")
    elif isinstance(payload, Mapping):
        data = payload
    else:
        raise ChatResponseError(f"Assistant reply must be a JSON object, got {type(payload).__name__}")

    if _is_error_payload(data):
        raise ChatServiceError(data["error"], data["code"])

    # An explicit null means "no updates"
    if data.get("sectionUpdates", data.get("section_updates", [])) is None:
        data = {k: v for k, v in data.items() if k not in ("sectionUpdates", "section_updates")}

    try:
        return ChatResponse.model_validate(data)
    except ValidationError as exc:
        raise ChatResponseError(f"Invalid assistant reply: {exc.error_count()} validation error(s)") from exc


def section_progress(content: Mapping[SectionKey, Section]) -> dict[str, list[str]]:
    """Summarize which sections are complete or in progress, for returning-user context."""

    completed = [k.value for k in SectionKey if k in content and content[k].status is SectionStatus.COMPLETE]
    in_progress = [k.value for k in SectionKey if k in content and content[k].status is SectionStatus.IN_PROGRESS]
    return {"completed_sections": completed, "in_progress_sections": in_progress}
