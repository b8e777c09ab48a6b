"""
Les Rhéteurs configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode keys.
"""

from __future__ import annotations

import os


class Settings:
    """Client settings from environment variables."""

    # Supabase project (anon key: every request runs under row-level security)
    SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.environ.get("SUPABASE_ANON_KEY", "")

    # Storage buckets
    COVERS_BUCKET: str = os.environ.get("COVERS_BUCKET", "covers")
    AVATARS_BUCKET: str = os.environ.get("AVATARS_BUCKET", "avatars")

    # Avatar downloads go straight to the public URL, not through the SDK
    DOWNLOAD_TIMEOUT_SECONDS: float = float(os.environ.get("DOWNLOAD_TIMEOUT_SECONDS", "30"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not _testing:
    if not settings.SUPABASE_URL:
        raise RuntimeError("SUPABASE_URL environment variable is required")
    if not settings.SUPABASE_ANON_KEY:
        raise RuntimeError("SUPABASE_ANON_KEY environment variable is required")
