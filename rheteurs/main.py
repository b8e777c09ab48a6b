"""
Les Rhéteurs client application.

Entry point for a UI shell: builds the session and the controllers on top
of one Supabase client and tears them down in reverse order.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from supabase import AsyncClient

from rheteurs import configure_logging, db
from rheteurs.auth import SessionContext
from rheteurs.services.circles import CirclesBoard
from rheteurs.services.profiles import ProfileEditor
from rheteurs.services.replies import ReplyThread
from rheteurs.services.salon import Salon

logger = logging.getLogger(__name__)


@dataclass
class App:
    """Everything a UI needs, wired to a single session."""

    session: SessionContext
    salon: Salon
    circles: CirclesBoard
    profile_editor: ProfileEditor

    def replies_for(self, post_id: str) -> ReplyThread:
        """Thread controller for an opened post. The caller closes it with the post."""
        return ReplyThread(post_id, self.session)


@asynccontextmanager
async def lifespan(client: AsyncClient | None = None) -> AsyncIterator[App]:
    """
    Application lifespan.

    Handles startup and shutdown logic:
    - Initialize the Supabase client (unless one is given)
    - Restore the session and load the first feed
    - Close controllers, session and client on shutdown
    """
    # Startup
    configure_logging()
    if client is None:
        await db.init_client()
    else:
        db.client = client

    session = SessionContext()
    await session.start()

    app = App(
        session=session,
        salon=Salon(session),
        circles=CirclesBoard(session),
        profile_editor=ProfileEditor(session),
    )
    await app.salon.refresh()
    logger.info("Application started")

    try:
        yield app
    finally:
        # Shutdown
        await app.profile_editor.close()
        await app.circles.close()
        await app.salon.close()
        await session.close()
        await db.close_client()
        logger.info("Application stopped")
