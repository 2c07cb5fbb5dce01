from abc import ABC, abstractmethod
from typing import List, Optional

from helpai.models.user import User
from helpai.models.conversation import Conversation, DEFAULT_TITLE
from helpai.models.message import Message


class ConversationStorage(ABC):
    """Operaciones de persistencia que usan los endpoints.

    Hay dos implementaciones (base de datos y memoria); la aplicación elige
    una al arrancar con ``build_storage``.
    """

    # Usuarios
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    # Conversaciones
    @abstractmethod
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]: ...

    @abstractmethod
    def list_conversations(self, user_id: Optional[int]) -> List[Conversation]:
        """Conversaciones del usuario (o de invitados si es None), la más reciente primero."""

    @abstractmethod
    def create_conversation(self, title: str = DEFAULT_TITLE, user_id: Optional[int] = None) -> Conversation: ...

    @abstractmethod
    def update_conversation(self, conversation_id: int, **fields) -> Optional[Conversation]: ...

    @abstractmethod
    def delete_conversation(self, conversation_id: int) -> bool: ...

    # Mensajes
    @abstractmethod
    def get_message(self, message_id: int) -> Optional[Message]: ...

    @abstractmethod
    def list_messages(self, conversation_id: int) -> List[Message]:
        """Mensajes ordenados por timestamp (y por id en caso de empate)."""

    @abstractmethod
    def create_message(self, conversation_id: int, role: str, content: str) -> Message:
        """Guarda el mensaje con id y timestamp propios y avanza ``updated_at``."""
