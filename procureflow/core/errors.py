"""Domain exceptions"""

from typing import Optional


class ProcureFlowError(Exception):
    """Base class for all ProcureFlow errors"""


class ConfigurationError(ProcureFlowError):
    """A required setting is missing"""


class InvalidProductError(ProcureFlowError):
    """Product payload could not be turned into a product"""


class ChatNotFoundError(ProcureFlowError):
    """No persisted chat exists for the given id"""

    def __init__(self, chat_id: str):
        super().__init__(f"Chat not found: {chat_id}")
        self.chat_id = chat_id


class ToolExecutionError(ProcureFlowError):
    """A tool call failed; reported to the model and the UI as output-error"""


class StreamProtocolError(ProcureFlowError):
    """A UI message stream event could not be applied"""


class UploadError(ProcureFlowError):
    """Rejected audio upload, carrying a machine-readable code"""

    def __init__(self, code: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class ChatRequestError(ProcureFlowError):
    """The chat endpoint answered with an error status"""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(f"Chat request failed ({status_code}): {detail or 'no detail'}")
        self.status_code = status_code
        self.detail = detail
