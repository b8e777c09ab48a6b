"""
Supabase client lifecycle.

All backend access goes through the client created here, and only the
repos (plus the session context for auth calls) touch it. Never call
create_async_client() outside this module.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from supabase import AsyncClient, PostgrestAPIError, create_async_client

from rheteurs import config
from rheteurs.errors import DataError

logger = logging.getLogger(__name__)

client: AsyncClient | None = None


async def init_client() -> AsyncClient:
    """
    Create the shared Supabase client.
    Called once at application startup.
    """
    global client
    if client is None:
        client = await create_async_client(
            config.settings.SUPABASE_URL,
            config.settings.SUPABASE_ANON_KEY,
        )
        logger.info("Supabase client initialized for %s", config.settings.SUPABASE_URL)
    return client


async def close_client() -> None:
    """
    Drop the shared client.
    Called at application shutdown, after every SessionContext is closed.
    """
    global client
    if client is not None:
        client = None
        logger.info("Supabase client closed")


def get_client() -> AsyncClient:
    """
    Return the shared client.

    Raises:
        RuntimeError: If init_client() has not run yet
    """
    if client is None:
        raise RuntimeError("Supabase client not initialized. Call init_client() first.")
    return client


async def execute(query: Any, action: str) -> Any:
    """
    Run a query builder and translate SDK failures.

    Usage:
        response = await execute(client.table("posts").select("*"), "fetch posts")

    Args:
        query: Any PostgREST request builder
        action: Short label used in logs

    Returns:
        The SDK response (rows in ``.data``)

    Raises:
        DataError: With the backend message verbatim
    """
    try:
        return await query.execute()
    except PostgrestAPIError as e:
        message = e.message or str(e)
        logger.warning("%s failed: %s", action, message)
        raise DataError(message) from e
    except httpx.HTTPError as e:
        logger.warning("%s failed: %s", action, e)
        raise DataError(str(e)) from e
