import itertools
import threading
from typing import Dict, List, Optional

from helpai.models.user import User
from helpai.models.conversation import Conversation, DEFAULT_TITLE
from helpai.models.message import Message
from helpai.storage.base import ConversationStorage
from helpai.utils.timeutils import utcnow


class MemoryStorage(ConversationStorage):
    """Persistencia en memoria del proceso (desarrollo, tests y despliegues sin BD)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._conversations: Dict[int, Conversation] = {}
        self._messages: Dict[int, Message] = {}
        self._user_ids = itertools.count(1)
        self._conversation_ids = itertools.count(1)
        self._message_ids = itertools.count(1)

    def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return next((u for u in self._users.values() if u.email == email), None)

    def create_user(self, user: User) -> User:
        with self._lock:
            user.id = next(self._user_ids)
            self._users[user.id] = user
        return user

    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def list_conversations(self, user_id: Optional[int]) -> List[Conversation]:
        items = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(items, key=lambda c: c.updated_at, reverse=True)

    def create_conversation(self, title: str = DEFAULT_TITLE, user_id: Optional[int] = None) -> Conversation:
        now = utcnow()
        with self._lock:
            conversation = Conversation(
                id=next(self._conversation_ids),
                title=title,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )
            self._conversations[conversation.id] = conversation
        return conversation

    def update_conversation(self, conversation_id: int, **fields) -> Optional[Conversation]:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if not conversation:
                return None
            for key, value in fields.items():
                setattr(conversation, key, value)
            conversation.updated_at = utcnow()
        return conversation

    def delete_conversation(self, conversation_id: int) -> bool:
        with self._lock:
            for message_id in [m.id for m in self._messages.values() if m.conversation_id == conversation_id]:
                del self._messages[message_id]
            return self._conversations.pop(conversation_id, None) is not None

    def get_message(self, message_id: int) -> Optional[Message]:
        return self._messages.get(message_id)

    def list_messages(self, conversation_id: int) -> List[Message]:
        items = [m for m in self._messages.values() if m.conversation_id == conversation_id]
        return sorted(items, key=lambda m: (m.timestamp, m.id))

    def create_message(self, conversation_id: int, role: str, content: str) -> Message:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise KeyError(f"Conversation {conversation_id} not found")
            now = utcnow()
            message = Message(
                id=next(self._message_ids),
                conversation_id=conversation_id,
                role=role,
                content=content,
                timestamp=now,
            )
            self._messages[message.id] = message
            conversation.updated_at = now
        return message
