import sys
import os
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("secret_key", "testsecret")

import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from helpai.core.config import Settings
from helpai.models.message import Message
from helpai.services.assistant import build_chat_messages
from helpai.utils.ollama_client import AssistantUnavailable, call_ollama


def make_settings():
    return Settings(
        secret_key="x",
        ollama_url="http://ollama:11434/",
        ollama_model="llama3:8b",
        assistant_temperature=0.2,
        assistant_max_tokens=256,
        assistant_timeout=5,
    )


def ok_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def test_call_ollama_posts_chat_request():
    chat = [{"role": "user", "content": "Hello"}]
    with patch("helpai.utils.ollama_client.requests.post",
               return_value=ok_response({"message": {"role": "assistant", "content": "Hi there!"}})) as mock_post:
        reply = call_ollama(chat, settings=make_settings())

    assert reply == "Hi there!"
    url = mock_post.call_args.args[0]
    kwargs = mock_post.call_args.kwargs
    assert url == "http://ollama:11434/api/chat"
    assert kwargs["json"]["model"] == "llama3:8b"
    assert kwargs["json"]["messages"] == chat
    assert kwargs["json"]["stream"] is False
    assert kwargs["json"]["options"] == {"temperature": 0.2, "num_predict": 256}
    assert kwargs["timeout"] == 5


def test_call_ollama_http_error_raises_assistant_unavailable():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError(
        "500 Server Error", response=MagicMock(text="model not loaded")
    )
    with patch("helpai.utils.ollama_client.requests.post", return_value=response):
        with pytest.raises(AssistantUnavailable, match="model not loaded"):
            call_ollama([], settings=make_settings())


def test_call_ollama_connection_error_raises_assistant_unavailable():
    with patch("helpai.utils.ollama_client.requests.post",
               side_effect=requests.ConnectionError("refused")):
        with pytest.raises(AssistantUnavailable, match="refused"):
            call_ollama([], settings=make_settings())


def test_call_ollama_empty_reply_raises_assistant_unavailable():
    with patch("helpai.utils.ollama_client.requests.post",
               return_value=ok_response({"message": {"content": "  "}})):
        with pytest.raises(AssistantUnavailable):
            call_ollama([], settings=make_settings())


def test_build_chat_messages_prepends_system_prompt_and_history():
    now = datetime.now(timezone.utc)
    history = [
        Message(id=1, conversation_id=1, role="user", content="first", timestamp=now),
        Message(id=2, conversation_id=1, role="assistant", content="answer", timestamp=now),
        Message(id=3, conversation_id=1, role="system", content="internal", timestamp=now),
    ]
    chat = build_chat_messages(history, "second")

    assert chat[0]["role"] == "system"
    assert "Help AI" in chat[0]["content"]
    assert chat[1:] == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "answer"},
        {"role": "user", "content": "second"},
    ]
