from apscheduler.schedulers.asyncio import AsyncIOScheduler
from qbuilder.core.db import AsyncSessionLocal

from qbuilder.core.rate_limit import auth_limiter
from qbuilder.services.auth.oauth_state import oauth_state_store
from qbuilder.services.quotes.quote_service import mark_expired_quotes
from qbuilder.services.quotes.pdf_cache_service import pdf_cache
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("cron", hour=0, minute=5)  # daily at 00:05
async def expire_quotes_job():
    async with AsyncSessionLocal() as db:
        expired = await mark_expired_quotes(db)
    logger.info("Quote expiry job finished", extra={"expired_count": expired})


@scheduler.scheduled_job("cron", minute=15)  # hourly at :15
async def cleanup_job():
    removed = pdf_cache.cleanup_expired()
    stale_states = oauth_state_store.purge_expired()
    stale_windows = auth_limiter.purge_expired()
    logger.info(
        "Cleanup job finished",
        extra={"pdfs_removed": removed, "oauth_states_removed": stale_states, "rate_windows_removed": stale_windows},
    )
