import logging
from typing import List, Optional

from sqlmodel import Session, select, delete

from helpai.models.user import User
from helpai.models.conversation import Conversation, DEFAULT_TITLE
from helpai.models.message import Message
from helpai.storage.base import ConversationStorage
from helpai.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class DatabaseStorage(ConversationStorage):
    """Persistencia en base de datos con SQLModel, una sesión por operación."""

    def __init__(self, engine):
        self.engine = engine

    def get_user(self, user_id: int) -> Optional[User]:
        with Session(self.engine) as session:
            return session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with Session(self.engine) as session:
            return session.exec(select(User).where(User.username == username)).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        with Session(self.engine) as session:
            return session.exec(select(User).where(User.email == email)).first()

    def create_user(self, user: User) -> User:
        with Session(self.engine) as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        with Session(self.engine) as session:
            return session.get(Conversation, conversation_id)

    def list_conversations(self, user_id: Optional[int]) -> List[Conversation]:
        with Session(self.engine) as session:
            query = select(Conversation)
            if user_id is None:
                query = query.where(Conversation.user_id == None)  # noqa: E711
            else:
                query = query.where(Conversation.user_id == user_id)
            return list(session.exec(query.order_by(Conversation.updated_at.desc())).all())

    def create_conversation(self, title: str = DEFAULT_TITLE, user_id: Optional[int] = None) -> Conversation:
        now = utcnow()
        conversation = Conversation(title=title, user_id=user_id, created_at=now, updated_at=now)
        with Session(self.engine) as session:
            session.add(conversation)
            session.commit()
            session.refresh(conversation)
            return conversation

    def update_conversation(self, conversation_id: int, **fields) -> Optional[Conversation]:
        with Session(self.engine) as session:
            conversation = session.get(Conversation, conversation_id)
            if not conversation:
                return None
            for key, value in fields.items():
                setattr(conversation, key, value)
            conversation.updated_at = utcnow()
            session.add(conversation)
            session.commit()
            session.refresh(conversation)
            return conversation

    def delete_conversation(self, conversation_id: int) -> bool:
        # Primero los mensajes, luego la conversación
        with Session(self.engine) as session:
            conversation = session.get(Conversation, conversation_id)
            session.exec(delete(Message).where(Message.conversation_id == conversation_id))
            if conversation:
                session.delete(conversation)
            session.commit()
            return conversation is not None

    def get_message(self, message_id: int) -> Optional[Message]:
        with Session(self.engine) as session:
            return session.get(Message, message_id)

    def list_messages(self, conversation_id: int) -> List[Message]:
        with Session(self.engine) as session:
            return list(session.exec(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(Message.timestamp, Message.id)
            ).all())

    def create_message(self, conversation_id: int, role: str, content: str) -> Message:
        now = utcnow()
        with Session(self.engine) as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None:
                raise KeyError(f"Conversation {conversation_id} not found")
            message = Message(conversation_id=conversation_id, role=role, content=content, timestamp=now)
            session.add(message)
            conversation.updated_at = now
            session.add(conversation)
            session.commit()
            session.refresh(message)
            logger.debug("Stored %s message %s in conversation %s", role, message.id, conversation_id)
            return message
