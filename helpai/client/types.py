from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, field_validator

from helpai.schemas.message import MessageRead, Role
from helpai.client.errors import ChatError
from helpai.utils.timeutils import as_utc


class MessageStatus(str, Enum):
    CONFIRMED = "confirmed"      # guardado en el servidor, con id
    PROVISIONAL = "provisional"  # mensaje del usuario aún sin confirmar
    PENDING = "pending"          # hueco del asistente mientras llega la respuesta
    FAILED = "failed"            # mensaje del usuario cuyo envío falló
    ERROR = "error"              # aviso de error mostrado como respuesta


class ExchangeState(str, Enum):
    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class SendOutcome(str, Enum):
    SKIPPED = "skipped"
    BUSY = "busy"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class ChatMessage(BaseModel):
    """Entrada visible de la conversación.

    ``token`` identifica el intercambio local que la creó; las entradas
    confirmadas no lo llevan y son las únicas con ``id``.
    """

    id: Optional[int] = None
    content: str
    role: Role
    timestamp: datetime
    status: MessageStatus = MessageStatus.CONFIRMED
    token: Optional[int] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def is_pending(self) -> bool:
        return self.status is MessageStatus.PENDING

    @property
    def is_confirmed(self) -> bool:
        return self.status is MessageStatus.CONFIRMED

    @classmethod
    def from_record(cls, record: MessageRead) -> "ChatMessage":
        return cls(
            id=record.id,
            content=record.content,
            role=record.role,
            timestamp=record.timestamp,
            status=MessageStatus.CONFIRMED,
        )


@dataclass(frozen=True)
class AuthContext:
    """Credenciales opcionales del cliente: token de acceso o modo invitado."""

    access_token: Optional[str] = None
    guest: bool = False

    def headers(self) -> Dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        if self.guest:
            return {"x-guest-mode": "true"}
        return {}


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    error: Optional[ChatError] = None
