import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from helpai.models.user import User
from helpai.schemas.message import ChatRequest, ChatExchangeRead, MessageRead
from helpai.api.endpoints.auth import get_request_user
from helpai.api.endpoints.conversations import get_owned_conversation
from helpai.services.assistant import generate_reply
from helpai.storage.base import ConversationStorage
from helpai.storage.factory import get_storage
from helpai.utils.ollama_client import AssistantUnavailable

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=ChatExchangeRead)
def send_message(
    chat_in: ChatRequest,
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    if not chat_in.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")
    conversation = get_owned_conversation(storage, chat_in.conversation_id, current_user)
    history = storage.list_messages(conversation.id)

    # Se genera la respuesta antes de guardar nada: si falla, no queda medio intercambio
    try:
        reply = generate_reply(history, chat_in.message)
    except AssistantUnavailable as exc:
        logger.warning("Assistant failed for conversation %s: %s", conversation.id, exc)
        raise HTTPException(status_code=502, detail="Assistant backend unavailable")

    user_msg = storage.create_message(conversation.id, "user", chat_in.message)
    ai_msg = storage.create_message(conversation.id, "assistant", reply)
    return ChatExchangeRead(
        user_message=MessageRead.model_validate(user_msg),
        assistant_message=MessageRead.model_validate(ai_msg),
    )
