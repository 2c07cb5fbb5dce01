from typing import Dict, List, Optional

from helpai.core.config import Settings
from helpai.models.message import Message
from helpai.utils.ollama_client import call_ollama
from helpai.utils.prompt_loader import load_prompt


def build_chat_messages(history: List[Message], content: str) -> List[Dict[str, str]]:
    """Prompt de sistema + historial de la conversación + mensaje nuevo."""
    chat = [{"role": "system", "content": load_prompt("system.txt").strip()}]
    for m in history:
        if m.role == "system":
            continue
        chat.append({"role": m.role, "content": m.content})
    chat.append({"role": "user", "content": content})
    return chat


def generate_reply(history: List[Message], content: str, settings: Optional[Settings] = None) -> str:
    return call_ollama(build_chat_messages(history, content), settings=settings)
