"""Adapters - I/O implementations of ports."""

from .supabase_rest import SupabaseRestAdapter, AuthenticationError
from .file_store import FileHabitStore

__all__ = [
    "SupabaseRestAdapter",
    "AuthenticationError",
    "FileHabitStore",
]
