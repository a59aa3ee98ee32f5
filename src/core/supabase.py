"""Supabase client singleton for database operations."""

from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from src.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS
    at the PostgREST level. Only use it after the caller's ownership
    or admin role has been verified.

    Services look this up by name at construction time, so tests patch
    it per module rather than replacing the cached instance.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Performs a simple query to verify database connectivity.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = get_supabase_client()
        # Execute a simple query to verify connection
        # against a table every deployment has
        client.table("menu_items").select("id").limit(1).execute()
        # If we get here without exception, connection is healthy
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
