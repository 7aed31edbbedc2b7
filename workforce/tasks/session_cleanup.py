"""
ARQ background task: mark sessions past their expiry as expired.

Scheduled to run at the top of every hour:

    arq workforce.tasks.session_cleanup.WorkerSettings
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from workforce.core.config import get_settings
from workforce.core.database import get_session_context
from workforce.core.logs import configure_logging
from workforce.core.redis import RevocationList
from workforce.services.sessions import SessionService

log = structlog.get_logger()
settings = get_settings()


async def cleanup_expired_sessions(ctx: dict) -> int:
    """Expire overdue sessions. Returns the number of sessions updated."""
    service: SessionService = ctx.get("session_service") or SessionService(settings, RevocationList())
    async with get_session_context() as session:
        count = await service.cleanup_expired_sessions(session)

    if count:
        log.info("session_cleanup.batch_expired", count=count)
    return count


async def startup(ctx: dict) -> None:
    configure_logging(settings.log_level, settings.log_format)
    ctx["session_service"] = SessionService(settings, RevocationList())


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [cleanup_expired_sessions]
    cron_jobs = [
        cron(cleanup_expired_sessions, minute=0),
    ]
    on_startup = startup
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
