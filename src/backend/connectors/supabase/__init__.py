"""Supabase (PostgREST) storage connector for buildings and their findings."""

from .client import SupabaseHttpError
from .config import SupabaseConfig, get_supabase_config
from .store import SupabaseBuildingStore

__all__ = ["SupabaseBuildingStore", "SupabaseConfig", "SupabaseHttpError", "get_supabase_config"]
