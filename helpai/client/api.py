import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from helpai.client.errors import ApiError
from helpai.client.types import AuthContext
from helpai.schemas.conversation import ConversationDetail, ConversationRead
from helpai.schemas.message import ChatExchangeRead

logger = logging.getLogger(__name__)


class ApiClient:
    """Cliente HTTP asíncrono de la API de conversaciones y chat.

    Cubre las dos dependencias de ``ChatEngine``: el almacén de
    conversaciones (``get_conversation``, ``create_conversation``,
    ``delete_conversation``) y el transporte (``exchange``).
    """

    def __init__(
        self,
        base_url: str,
        auth: Optional[AuthContext] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth = auth
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=auth.headers() if auth else {},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ApiError(_error_detail(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.error("Request %s %s failed: %s", method, path, exc)
            raise ApiError(str(exc) or exc.__class__.__name__) from exc
        return response

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ApiError(f"Unexpected response payload: {exc}") from exc

    async def list_conversations(self) -> List[ConversationRead]:
        response = await self._request("GET", "/api/conversations/")
        return [self._parse(ConversationRead, item) for item in response.json()]

    async def get_conversation(self, conversation_id: int) -> Optional[ConversationDetail]:
        try:
            response = await self._request("GET", f"/api/conversations/{conversation_id}")
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        return self._parse(ConversationDetail, response.json())

    async def create_conversation(self, title: str) -> ConversationRead:
        response = await self._request("POST", "/api/conversations/", json={"title": title})
        return self._parse(ConversationRead, response.json())

    async def rename_conversation(self, conversation_id: int, title: str) -> ConversationRead:
        response = await self._request("PUT", f"/api/conversations/{conversation_id}", json={"title": title})
        return self._parse(ConversationRead, response.json())

    async def delete_conversation(self, conversation_id: int) -> bool:
        try:
            await self._request("DELETE", f"/api/conversations/{conversation_id}")
        except ApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def exchange(self, conversation_id: int, content: str) -> ChatExchangeRead:
        response = await self._request(
            "POST", "/api/chat/", json={"message": content, "conversation_id": conversation_id}
        )
        return self._parse(ChatExchangeRead, response.json())


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"API error: {response.status_code}"
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return f"API error: {response.status_code}"
