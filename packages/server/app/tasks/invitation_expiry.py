"""
ARQ background task: mark lapsed pending invitations as expired.

Acceptance already expires invitations lazily; this sweep only keeps
listings fresh for admins.
"""

from __future__ import annotations

from arq.connections import RedisSettings
from arq.cron import cron
import structlog

from app.core.config import get_settings
from app.core.database import get_session_context
from app.services.invitations import expire_stale_invitations

log = structlog.get_logger()
settings = get_settings()


async def sweep_expired_invitations(ctx: dict) -> int:
    """Expire every pending invitation whose expiresAt has passed.

    Returns the number of invitations expired.
    """
    async with get_session_context() as session:
        count = await expire_stale_invitations(session)

    log.info("invitation_expiry.sweep_finished", count=count)
    return count


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [sweep_expired_invitations]
    cron_jobs = [
        cron(
            sweep_expired_invitations,
            minute=set(settings.invitation_sweep_minutes),
            run_at_startup=True,
        ),
    ]
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
