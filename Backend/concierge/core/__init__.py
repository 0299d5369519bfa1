"""
Core module - configuration, database and response formatting.
"""
from .config import Settings, get_settings
from .db import Base, engine, AsyncSessionLocal, dispose_engine
from .responses import (
    WEBHOOK_ACK,
    ErrorCodes,
    error_response,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "engine",
    "AsyncSessionLocal",
    "dispose_engine",
    # Responses
    "WEBHOOK_ACK",
    "ErrorCodes",
    "error_response",
]
