# Core modules

from .config import settings, get_settings, Settings
from .errors import (
    ProcureFlowError,
    ConfigurationError,
    InvalidProductError,
    ChatNotFoundError,
    ToolExecutionError,
    StreamProtocolError,
    UploadError,
    ChatRequestError,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "ProcureFlowError",
    "ConfigurationError",
    "InvalidProductError",
    "ChatNotFoundError",
    "ToolExecutionError",
    "StreamProtocolError",
    "UploadError",
    "ChatRequestError",
]
