from typing import Optional


class ChatError(Exception):
    """Base de los errores que el motor comunica por su canal de avisos."""


class NotFound(ChatError):
    def __init__(self, conversation_id: int):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class LoadFailed(ChatError):
    def __init__(self, conversation_id: int, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to load conversation {conversation_id}: {cause}")
        self.conversation_id = conversation_id
        self.cause = cause


class CreateFailed(ChatError):
    def __init__(self, title: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to create conversation {title!r}: {cause}")
        self.title = title
        self.cause = cause


class DeleteFailed(ChatError):
    def __init__(self, conversation_id: int, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to delete conversation {conversation_id}: {cause}")
        self.conversation_id = conversation_id
        self.cause = cause


class TransportError(ChatError):
    def __init__(self, conversation_id: int, cause: Optional[BaseException] = None):
        super().__init__(f"Exchange failed for conversation {conversation_id}: {cause}")
        self.conversation_id = conversation_id
        self.cause = cause


class Busy(ChatError):
    def __init__(self, conversation_id: int):
        super().__init__(f"A message is already being sent in conversation {conversation_id}")
        self.conversation_id = conversation_id


class ApiError(Exception):
    """Fallo HTTP o de red devuelto por ``ApiClient``."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail if status_code is None else f"{status_code}: {detail}")
        self.detail = detail
        self.status_code = status_code
