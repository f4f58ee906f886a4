# UI message stream protocol shared by server and client

from . import events
from .events import encode_sse, iter_sse_events, STREAM_HEADERS
from .reducer import MessageStreamReducer, parse_partial_json
from .history import normalize_text, is_duplicate_submission

__all__ = [
    "events",
    "encode_sse",
    "iter_sse_events",
    "STREAM_HEADERS",
    "MessageStreamReducer",
    "parse_partial_json",
    "normalize_text",
    "is_duplicate_submission",
]
