"""Core app configuration, database and security primitives."""

from corpgate.core.config import get_settings, settings
from corpgate.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
