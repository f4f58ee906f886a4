"""ProcureFlow - chat-first procurement storefront"""

__version__ = "1.0.0"
