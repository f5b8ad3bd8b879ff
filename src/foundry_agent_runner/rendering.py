"""Format thread messages for display."""

from __future__ import annotations

from typing import Iterable

from .models import ImageReference, Message, MessageContent, TextContent


def render_content(block: MessageContent) -> str:
    match block:
        case TextContent(text=text):
            return text
        case ImageReference(file_id=file_id):
            return f"Image from ID: {file_id}"
        case _:
            raise ValueError(f"Unknown content block: {block!r}")



def render_message(message: Message) -> list[str]:
    """Header line (timestamp and role) followed by one line per content block."""
    lines = [f"{message.created_at.isoformat()} - {message.role.value} :"]
    lines.extend(render_content(block) for block in message.content)
    return lines


def render_conversation(messages: Iterable[Message]) -> list[str]:
    """Render messages oldest first."""
    ordered = sorted(messages, key=lambda message: message.created_at)
    lines: list[str] = []
    for message in ordered:
        lines.extend(render_message(message))
    return lines
