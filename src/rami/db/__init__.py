"""
Rami - Database Client.

Provides Supabase access for draft storage.
"""

from rami.db.client import get_service_client, reset_client

__all__ = [
    "get_service_client",
    "reset_client",
]
