from apscheduler.jobstores.base import ConflictingIdError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.core.settings import settings
from app.db.sesson import AsyncSessionLocal
from app.services.shares.session import SessionService
from app.services.shares.subscription_access import SubscriptionAccessService

scheduler = AsyncIOScheduler()


# ================================
# JOB 1: end stale login sessions
# ================================
async def session_cleanup_job():
    logger.info("🔎 Running session cleanup job...")

    async with AsyncSessionLocal() as session:
        service = SessionService(session)
        try:
            ended = await service.cleanup_expired_sessions_async()
            logger.success(f"✔ Session cleanup ended {ended} session(s)")
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Session cleanup job error: {e}")


# ================================
# JOB 2: expire overdue subscriptions
# ================================
async def subscription_expiry_job():
    logger.info("🔎 Running subscription expiry job...")

    async with AsyncSessionLocal() as session:
        service = SubscriptionAccessService(session)
        try:
            expired = await service.expire_overdue_subscriptions_async()
            logger.success(f"✔ Expired {expired} subscription(s)")
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Subscription expiry job error: {e}")


# ================================
# START ALL JOBS
# ================================
def start_scheduler():
    try:
        scheduler.add_job(
            session_cleanup_job,
            trigger=IntervalTrigger(minutes=settings.SESSION_CLEANUP_MINUTES),
            id="session_cleanup_job",
            replace_existing=True,
            max_instances=1,
        )
    except ConflictingIdError:
        logger.warning("⚠ session_cleanup_job existed")

    try:
        scheduler.add_job(
            subscription_expiry_job,
            trigger=IntervalTrigger(minutes=settings.SUBSCRIPTION_EXPIRY_MINUTES),
            id="subscription_expiry_job",
            replace_existing=True,
            max_instances=1,
        )
    except ConflictingIdError:
        logger.warning("⚠ subscription_expiry_job existed")

    scheduler.start()
    logger.info("🔔 Scheduler started (session cleanup + subscription expiry)")
