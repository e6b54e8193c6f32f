"""Thin wrapper around the Anthropic Messages API."""

from __future__ import annotations

import logging
import os
from typing import Any

import anthropic

LOGGER = logging.getLogger(__name__)

_DEFAULT_CLAUDE_MODEL = "claude-opus-4-6"


def claude_configured() -> bool:
    return bool(os.getenv("ANTHROPIC_API_KEY"))


def claude_chat(system: str, user: str, max_tokens: int = 1024) -> str:
    """Send one system + user turn to Claude and return the concatenated text reply.

    Args:
        system: Instructions passed via the dedicated system= parameter.
        user: The single user message.
        max_tokens: Hard cap on output tokens (keep low for JSON-only tasks).
    """
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is required")

    claude_model = os.getenv("CLAUDE_MODEL", _DEFAULT_CLAUDE_MODEL)
    client = anthropic.Anthropic(api_key=api_key)

    kwargs: dict[str, Any] = {
        "model": claude_model,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": user}],
    }
    if system:
        kwargs["system"] = system

    LOGGER.debug("Calling Claude model=%s max_tokens=%s", claude_model, max_tokens)
    response = client.messages.create(**kwargs)
    text = "".join(
        block.text for block in response.content if getattr(block, "type", "text") == "text"
    )
    if not text:
        raise RuntimeError("Claude returned an empty response")
    return text
