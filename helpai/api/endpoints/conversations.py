from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional

from helpai.models.conversation import Conversation, DEFAULT_TITLE
from helpai.models.user import User
from helpai.schemas.conversation import (
    ConversationCreate, ConversationRead, ConversationUpdate, ConversationDetail,
)
from helpai.schemas.message import MessageRead
from helpai.api.endpoints.auth import get_request_user
from helpai.storage.base import ConversationStorage
from helpai.storage.factory import get_storage

router = APIRouter()


def owner_id(user: Optional[User]) -> Optional[int]:
    return user.id if user else None


def get_owned_conversation(storage: ConversationStorage, conversation_id: int, user: Optional[User]) -> Conversation:
    conversation = storage.get_conversation(conversation_id)
    # Las conversaciones de otros usuarios se tratan como inexistentes
    if not conversation or conversation.user_id != owner_id(user):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/", response_model=List[ConversationRead])
def list_conversations(
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    return storage.list_conversations(owner_id(current_user))

@router.post("/", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
def create_conversation(
    conversation_in: ConversationCreate,
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    title = (conversation_in.title or "").strip() or DEFAULT_TITLE
    return storage.create_conversation(title=title, user_id=owner_id(current_user))

@router.get("/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: int,
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    conversation = get_owned_conversation(storage, conversation_id, current_user)
    messages = storage.list_messages(conversation.id)
    return ConversationDetail(
        conversation=ConversationRead.model_validate(conversation),
        messages=[MessageRead.model_validate(m) for m in messages],
    )

@router.put("/{conversation_id}", response_model=ConversationRead)
def update_conversation(
    conversation_id: int,
    conversation_in: ConversationUpdate,
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    get_owned_conversation(storage, conversation_id, current_user)
    title = conversation_in.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title must not be empty")
    return storage.update_conversation(conversation_id, title=title)

@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_conversation(
    conversation_id: int,
    storage: ConversationStorage = Depends(get_storage),
    current_user: Optional[User] = Depends(get_request_user),
):
    get_owned_conversation(storage, conversation_id, current_user)
    storage.delete_conversation(conversation_id)
