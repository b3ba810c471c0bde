import logging
from typing import Optional

from fastapi import Request
from postgrest.exceptions import APIError
from supabase import create_client, Client

from app.config import settings

logger = logging.getLogger(__name__)

# Postgres error codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"  # e.g. "invalid-id" compared against a uuid column


def create_supabase_client() -> Client:
    """Client for server-side access; prefers the service_role key so RLS does not hide rows."""
    key = settings.supabase_service_role_key or settings.supabase_key
    logger.info("Creating Supabase client for %s", settings.supabase_url)
    return create_client(settings.supabase_url, key)


def get_supabase(request: Request) -> Client:
    """Return the client handle the application was constructed with."""
    client: Optional[Client] = getattr(request.app.state, "supabase", None)
    if client is None:
        client = create_supabase_client()
        request.app.state.supabase = client
    return client


def is_unique_violation(error: Exception) -> bool:
    return isinstance(error, APIError) and error.code == UNIQUE_VIOLATION


def is_malformed_id(error: Exception) -> bool:
    return isinstance(error, APIError) and error.code == INVALID_TEXT_REPRESENTATION
