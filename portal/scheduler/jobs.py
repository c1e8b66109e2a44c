"""APScheduler jobs: periodic Zoho Books invoice sync."""

import logging
from datetime import datetime

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from portal.config import get_settings
from portal.infrastructure.database import SessionLocal

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


async def periodic_sync_job():
    """Periodic job: pull new invoices from Zoho Books."""
    from portal.application.services.sync_service import sync_invoices
    from portal.domain.models.invoice_line import InvoiceLine
    from portal.infrastructure.repositories.invoice_repository import SQLAlchemyInvoiceRepository
    from portal.infrastructure.zoho_client import ZohoBooksClient

    client = ZohoBooksClient()
    if not client.configured:
        logger.info("Zoho Books not configured, skipping scheduled sync")
        return

    logger.info(f"Running scheduled invoice sync at {datetime.now(tz).strftime('%d/%m/%Y %H:%M')}")

    db = SessionLocal()
    try:
        repo = SQLAlchemyInvoiceRepository(db, InvoiceLine)
        result = await sync_invoices(db, repo, client, sync_type="scheduled")
        logger.info(
            f"Scheduled sync {result.status}: {result.records_imported} invoices, "
            f"{result.lines_inserted} lines, {len(result.errors)} errors"
        )
    except Exception:
        logger.exception("Scheduled sync job failed")
    finally:
        db.close()


def start_scheduler():
    """Start the scheduler when enabled in settings."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled")
        return

    scheduler.add_job(
        periodic_sync_job,
        trigger=IntervalTrigger(minutes=settings.SYNC_INTERVAL_MINUTES, timezone=tz),
        id="periodic_invoice_sync",
        name=f"Invoice Sync (Every {settings.SYNC_INTERVAL_MINUTES} mins)",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started: invoice sync every {settings.SYNC_INTERVAL_MINUTES} mins ({settings.TIMEZONE})")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
