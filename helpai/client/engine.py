"""Estado local de la conversación abierta en el cliente.

``ChatEngine`` muestra al instante el mensaje del usuario y un hueco para la
respuesta, y después lo sustituye por lo que confirme el servidor (o por un
aviso de error). Las entradas provisionales se localizan siempre por el
token del intercambio que las creó, nunca por su posición ni por la hora.
"""
import asyncio
import itertools
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from helpai.client.errors import (
    Busy, ChatError, CreateFailed, DeleteFailed, LoadFailed, NotFound, TransportError,
)
from helpai.client.types import (
    AuthContext, ChatMessage, ExchangeState, MessageStatus, Notice, SendOutcome,
)
from helpai.models.conversation import DEFAULT_TITLE
from helpai.schemas.conversation import ConversationDetail, ConversationRead
from helpai.schemas.message import ChatExchangeRead
from helpai.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again."


class ConversationStore(Protocol):
    async def get_conversation(self, conversation_id: int) -> Optional[ConversationDetail]: ...

    async def create_conversation(self, title: str) -> ConversationRead: ...

    async def delete_conversation(self, conversation_id: int) -> bool: ...


class Transport(Protocol):
    async def exchange(self, conversation_id: int, content: str) -> ChatExchangeRead: ...


def log_notice(notice: Notice) -> None:
    logger.warning("%s: %s", notice.title, notice.description)


class ConversationView:
    """Mensajes de una conversación abierta y su intercambio en curso."""

    def __init__(self, conversation: ConversationRead, messages: List[ChatMessage]):
        self.conversation = conversation
        # sorted() es estable: los empates conservan el orden de llegada
        self.messages: List[ChatMessage] = sorted(messages, key=lambda m: m.timestamp)
        self.state = ExchangeState.IDLE
        self.pending_token: Optional[int] = None

    def local_timestamp(self) -> datetime:
        now = utcnow()
        if self.messages and self.messages[-1].timestamp > now:
            return self.messages[-1].timestamp
        return now

    def insert(self, entry: ChatMessage) -> None:
        index = len(self.messages)
        while index > 0 and self.messages[index - 1].timestamp > entry.timestamp:
            index -= 1
        self.messages.insert(index, entry)

    def find(self, token: int, status: MessageStatus) -> Optional[ChatMessage]:
        return next((m for m in self.messages if m.token == token and m.status is status), None)

    def discard(self, token: int, status: Optional[MessageStatus] = None) -> int:
        kept = [
            m for m in self.messages
            if m.token != token or (status is not None and m.status is not status)
        ]
        removed = len(self.messages) - len(kept)
        self.messages = kept
        return removed


class ChatEngine:
    """Estado observable de la conversación abierta.

    Ninguna operación lanza excepciones hacia quien la llama: los fallos
    quedan en ``last_error`` y se notifican con ``notify``. La única
    excepción es la cancelación de un envío, que se propaga después de
    dejar la vista en estado de error.
    """

    def __init__(
        self,
        store: ConversationStore,
        transport: Transport,
        notify: Optional[Callable[[Notice], None]] = None,
        auth: Optional[AuthContext] = None,
    ):
        self.store = store
        self.transport = transport
        self.auth = auth
        self.last_error: Optional[ChatError] = None
        self.last_exchange = ExchangeState.IDLE
        self._notify = notify or log_notice
        self._view: Optional[ConversationView] = None
        self._loading = 0
        self._generation = 0
        self._tokens = itertools.count(1)
        # id de conversación -> vista que recibirá la respuesta en curso
        self._in_flight: Dict[int, ConversationView] = {}

    @classmethod
    def connect(cls, base_url: str, auth: Optional[AuthContext] = None, **kwargs) -> "ChatEngine":
        from helpai.client.api import ApiClient

        notify = kwargs.pop("notify", None)
        client = ApiClient(base_url, auth=auth, **kwargs)
        return cls(client, client, notify=notify, auth=auth)

    @property
    def is_guest(self) -> bool:
        return self.auth is None or not self.auth.access_token

    @property
    def conversation(self) -> Optional[ConversationRead]:
        return self._view.conversation if self._view else None

    @property
    def messages(self) -> List[ChatMessage]:
        if self._view is None:
            return []
        return [m.model_copy() for m in self._view.messages]

    @property
    def is_loading(self) -> bool:
        return self._loading > 0

    @property
    def state(self) -> ExchangeState:
        return self._view.state if self._view else ExchangeState.IDLE

    def _report(self, error: ChatError, description: str) -> None:
        self.last_error = error
        logger.warning("%s", error)
        try:
            self._notify(Notice(title="Error", description=description, error=error))
        except Exception:
            logger.exception("Notification callback failed")

    def _open(self, view: ConversationView) -> None:
        # Si la conversación tiene un envío en curso, la vista nueva hereda
        # sus entradas provisionales y pasa a recibir la respuesta
        origin = self._in_flight.get(view.conversation.id)
        if origin is not None and origin.pending_token is not None:
            token = origin.pending_token
            for entry in origin.messages:
                if entry.token == token:
                    view.messages.append(entry.model_copy(update={"timestamp": view.local_timestamp()}))
            view.pending_token = token
            view.state = ExchangeState.OPTIMISTIC
            self._in_flight[view.conversation.id] = view
        self._view = view

    async def load_conversation(self, conversation_id: int) -> Optional[ConversationRead]:
        self._generation += 1
        generation = self._generation
        self._loading += 1
        try:
            detail = await self.store.get_conversation(conversation_id)
        except Exception as exc:
            self._report(LoadFailed(conversation_id, exc), "Failed to load conversation")
            return None
        finally:
            self._loading -= 1

        if generation != self._generation:
            logger.debug("Discarding stale load of conversation %s", conversation_id)
            return None
        if detail is None:
            self._report(NotFound(conversation_id), "Failed to load conversation")
            return None
        self._open(ConversationView(
            detail.conversation, [ChatMessage.from_record(m) for m in detail.messages]
        ))
        return detail.conversation

    async def start_new_conversation(self, title: Optional[str] = None) -> Optional[int]:
        title = (title or "").strip() or DEFAULT_TITLE
        self._generation += 1
        generation = self._generation
        self._loading += 1
        try:
            conversation = await self.store.create_conversation(title)
        except Exception as exc:
            self._report(CreateFailed(title, exc), "Failed to create a new conversation")
            return None
        finally:
            self._loading -= 1

        if generation == self._generation:
            self._open(ConversationView(conversation, []))
        return conversation.id

    async def delete_conversation(self, conversation_id: int) -> bool:
        try:
            deleted = await self.store.delete_conversation(conversation_id)
        except Exception as exc:
            self._report(DeleteFailed(conversation_id, exc), "Failed to delete conversation")
            return False
        if not deleted:
            self._report(NotFound(conversation_id), "Failed to delete conversation")
            return False
        if self._view is not None and self._view.conversation.id == conversation_id:
            self._generation += 1
            self._view = None
        return True

    async def send_user_message(self, content: str) -> SendOutcome:
        view = self._view
        if view is None or not content or not content.strip():
            return SendOutcome.SKIPPED
        conversation_id = view.conversation.id
        if conversation_id in self._in_flight:
            self._report(Busy(conversation_id), "Please wait for the current reply before sending another message.")
            return SendOutcome.BUSY

        token = next(self._tokens)
        stamp = view.local_timestamp()
        view.messages.append(ChatMessage(
            content=content, role="user", timestamp=stamp,
            status=MessageStatus.PROVISIONAL, token=token,
        ))
        view.messages.append(ChatMessage(
            content="", role="assistant", timestamp=stamp,
            status=MessageStatus.PENDING, token=token,
        ))
        view.pending_token = token
        view.state = ExchangeState.OPTIMISTIC
        self._in_flight[conversation_id] = view

        try:
            exchange = await self.transport.exchange(conversation_id, content)
        except asyncio.CancelledError as exc:
            self._reconcile_failure(self._in_flight.get(conversation_id, view), token)
            self._report(TransportError(conversation_id, exc), "Message sending was cancelled.")
            raise
        except Exception as exc:
            self._reconcile_failure(self._in_flight.get(conversation_id, view), token)
            self._report(TransportError(conversation_id, exc), "Failed to send message. Please try again.")
            return SendOutcome.FAILED
        else:
            self._reconcile_success(self._in_flight.get(conversation_id, view), token, exchange)
            return SendOutcome.CONFIRMED
        finally:
            self._in_flight.pop(conversation_id, None)

    def _reconcile_success(self, view: ConversationView, token: int, exchange: ChatExchangeRead) -> None:
        removed = view.discard(token)
        if removed != 2:
            logger.warning("Exchange %s in conversation %s removed %s provisional entries",
                           token, view.conversation.id, removed)
        for record in (exchange.user_message, exchange.assistant_message):
            # una recarga posterior al guardado ya puede traerlo
            if any(m.is_confirmed and m.id == record.id for m in view.messages):
                continue
            view.insert(ChatMessage.from_record(record))
        view.pending_token = None
        view.state = ExchangeState.IDLE
        self.last_exchange = ExchangeState.CONFIRMED

    def _reconcile_failure(self, view: ConversationView, token: int) -> None:
        view.discard(token, MessageStatus.PENDING)
        # El mensaje no se guardó, pero el usuario sigue viendo lo que escribió
        entry = view.find(token, MessageStatus.PROVISIONAL)
        if entry is not None:
            entry.status = MessageStatus.FAILED
        view.messages.append(ChatMessage(
            content=ERROR_REPLY, role="assistant", timestamp=view.local_timestamp(),
            status=MessageStatus.ERROR,
        ))
        view.pending_token = None
        view.state = ExchangeState.IDLE
        self.last_exchange = ExchangeState.FAILED
