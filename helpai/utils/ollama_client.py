import logging
from typing import Dict, List, Optional

import requests
from helpai.core.config import Settings


logger = logging.getLogger(__name__)


class AssistantUnavailable(RuntimeError):
    """El backend del asistente no devolvió una respuesta utilizable."""


def call_ollama(messages: List[Dict[str, str]], settings: Optional[Settings] = None) -> str:
    """Llama al endpoint de chat de Ollama con el historial indicado."""
    if settings is None:
        settings = Settings()
    base_url = settings.ollama_url

    try:
        response = requests.post(
            base_url.rstrip("/") + "/api/chat",
            json={
                "model": settings.ollama_model,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": settings.assistant_temperature,
                    "num_predict": settings.assistant_max_tokens,
                },
            },
            timeout=settings.assistant_timeout,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        content = getattr(exc.response, "text", "")
        if content:
            logger.error("Ollama request failed: %s", content)
        else:
            logger.error("Ollama request failed: %s", exc)
        raise AssistantUnavailable(
            f"Error calling Ollama at {base_url}: {content or exc}"
        ) from exc

    try:
        result = response.json()
    except ValueError as exc:
        raise AssistantUnavailable("Ollama returned a non-JSON response") from exc
    reply = (result.get("message") or {}).get("content", "")
    if not reply.strip():
        raise AssistantUnavailable("Ollama returned an empty reply")
    return reply
