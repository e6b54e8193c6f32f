from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from anthropic_client import claude_chat, claude_configured


def _mock_client(*blocks: SimpleNamespace) -> MagicMock:
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(content=list(blocks))
    return client


def test_claude_configured_reads_env() -> None:
    with patch.dict("os.environ", {}, clear=True):
        assert claude_configured() is False
    with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "k"}):
        assert claude_configured() is True


def test_claude_chat_passes_system_and_joins_text_blocks() -> None:
    client = _mock_client(
        SimpleNamespace(type="text", text='{"a": '),
        SimpleNamespace(type="text", text="1}"),
    )

    with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "k", "CLAUDE_MODEL": "claude-test"}), \
         patch("anthropic_client.anthropic.Anthropic", return_value=client):
        reply = claude_chat("Be strict.", "Review this.", max_tokens=128)

    assert reply == '{"a": 1}'
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["system"] == "Be strict."
    assert kwargs["max_tokens"] == 128
    assert kwargs["messages"] == [{"role": "user", "content": "Review this."}]


def test_claude_chat_empty_reply_raises() -> None:
    with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "k"}), \
         patch("anthropic_client.anthropic.Anthropic", return_value=_mock_client()):
        with pytest.raises(RuntimeError, match="empty"):
            claude_chat("", "hi")


def test_claude_chat_requires_api_key() -> None:
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
            claude_chat("", "hi")
