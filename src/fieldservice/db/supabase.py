"""Supabase client for Python backend."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Example usage patterns:
#
# from .db.supabase import get_supabase_client
#
# # Completed visits in a window with joined branch coordinates
# result = get_supabase_client().table('visits') \
#     .select('id, visit_date, branch:branch_id(latitude, longitude)') \
#     .eq('status', 'completed') \
#     .gte('visit_date', '2025-01-01T00:00:00') \
#     .lte('visit_date', '2025-01-31T23:59:59.999999') \
#     .execute()
