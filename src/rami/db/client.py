"""
Rami - Supabase Client.

Low-level database access for the supabase draft backend.
"""

from supabase import Client, create_client

from rami.config import settings

# Singleton client instance
_client: Client | None = None


def get_service_client() -> Client:
    """
    Get the Supabase client (service role).

    Uses singleton pattern to reuse connection.

    Raises:
        ValueError: SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured
    """
    global _client

    if _client is None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for supabase drafts"
            )
        _client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _client


def reset_client() -> None:
    """Drop the cached client (tests, credential rotation)."""
    global _client
    _client = None
