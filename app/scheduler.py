"""
Scheduler for background campaign jobs

Uses APScheduler to dispatch scheduled campaigns and clean up expired rows.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime
from typing import Optional

from app.models.base import session_scope
from app.config import get_settings
from app.services import auth_service
from app.services.analytics_service import AnalyticsService
from app.services.campaign_service import CampaignService
from app.services.dispatch_service import DispatchService
from app.services.exceptions import NoEligibleCustomersError
from app.utils.logger import log

settings = get_settings()
scheduler = AsyncIOScheduler()


# Jobs

async def dispatch_scheduled_campaigns(now: Optional[datetime] = None, transports: Optional[dict] = None) -> int:
    """
    Send every active scheduled campaign whose time has passed.

    A dispatched campaign is marked completed so it is sent once, including
    when nobody was eligible. Returns the number of campaigns dispatched.
    """
    dispatched = 0
    with session_scope() as db:
        campaigns = CampaignService(db)
        for campaign in campaigns.due_scheduled_campaigns(now):
            log.info(f"Dispatching scheduled campaign {campaign.id} '{campaign.name}'")
            try:
                result = await DispatchService(db, transports).dispatch_campaign(campaign.user_id, campaign)
                log.info(f"Scheduled campaign {campaign.id}: {result.sent}/{result.total} sent")
            except NoEligibleCustomersError:
                log.warning(f"Scheduled campaign {campaign.id} has no eligible customers")
            except Exception as e:
                log.error(f"Scheduled campaign {campaign.id} failed: {str(e)}")
                db.rollback()
                continue

            db.refresh(campaign)
            campaigns.set_status(campaign, "completed")
            db.commit()
            dispatched += 1
    return dispatched


async def cleanup_expired_rows():
    """Delete expired analytics cache rows and login sessions (hourly)"""
    try:
        with session_scope() as db:
            cache_rows = AnalyticsService(db).cleanup_expired()
            sessions = auth_service.cleanup_expired(db)
        log.info(f"Cleanup removed {cache_rows} cache rows and {sessions} sessions")
    except Exception as e:
        log.error(f"Cleanup job failed: {str(e)}")


def setup_scheduler():
    """
    Configure the scheduler.

    - Scheduled campaigns: every scheduled_dispatch_interval_seconds (default 60s)
    - Cleanup:             every hour
    """
    scheduler.add_job(
        dispatch_scheduled_campaigns,
        trigger=IntervalTrigger(seconds=settings.scheduled_dispatch_interval_seconds),
        id='scheduled_campaign_dispatch',
        name='Scheduled Campaign Dispatch',
        replace_existing=True,
        max_instances=1
    )
    scheduler.add_job(
        cleanup_expired_rows,
        trigger=IntervalTrigger(hours=1),
        id='expired_rows_cleanup',
        name='Expired Cache & Session Cleanup',
        replace_existing=True,
        max_instances=1
    )
    log.info("Scheduler configured with campaign jobs")


def start_scheduler():
    """Start the scheduler"""
    setup_scheduler()
    scheduler.start()
    log.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        log.info("Scheduler stopped")


def get_scheduled_jobs() -> list:
    """List scheduled jobs with their next run time"""
    jobs = []
    for job in scheduler.get_jobs():
        next_run = job.next_run_time
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': next_run.isoformat() if next_run else None,
            'trigger': str(job.trigger)
        })
    return jobs
