"""Accounting sync: pulls Zoho Books invoices and items into the portal's tables.

Each invoice line item becomes one row of 'facture'. An invoice whose number
already has lines stored is skipped, so re-running a sync only appends new
invoices. A failing invoice is logged and counted; the run continues.
"""

import asyncio
from datetime import date
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.application.services.rollup import local_today, parse_date, parse_number
from portal.config import get_settings
from portal.core.exceptions import AppError, ExternalServiceException
from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.models.sync_log import SyncLog
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.schemas.sync import SyncLogRead, SyncResult, SyncStatus
from portal.infrastructure.database import describe_db_error
from portal.infrastructure.zoho_client import ZohoBooksClient

logger = structlog.get_logger(__name__)
settings = get_settings()

CATEGORY_FIELD_LABELS = {"category", "catégorie", "categorie"}


def invoice_to_lines(invoice: dict) -> list[InvoiceLine]:
    """Map a Zoho invoice detail to invoice lines."""
    invoice_number = invoice.get("invoice_number") or invoice.get("invoice_id")
    status = (invoice.get("status") or "unknown").lower()
    invoice_date = parse_date(invoice.get("date"))

    return [
        InvoiceLine(
            invoice_id=str(invoice_number) if invoice_number else None,
            client_name=invoice.get("customer_name"),
            date=invoice_date,
            product=item.get("name") or item.get("description"),
            quantity=parse_number(item.get("quantity")),
            price=parse_number(item.get("rate")),
            status=status,
        )
        for item in invoice.get("line_items", [])
    ]


def item_category(item: dict) -> Optional[str]:
    """Category custom field of a Zoho item ("cf_category" or a custom field labelled Category)."""
    if item.get("cf_category"):
        return str(item["cf_category"]).strip() or None
    for field in item.get("custom_fields", []) or []:
        label = str(field.get("label") or field.get("api_name") or "").strip().lower()
        if label in CATEGORY_FIELD_LABELS or label == "cf_category":
            value = field.get("value_formatted") or field.get("value")
            return str(value).strip() or None if value else None
    return None


def _write_log(db: Session, result: SyncResult, skipped: int) -> SyncLog:
    log = SyncLog(
        sync_type=result.sync_type,
        records_processed=result.lines_inserted,
        records_skipped=skipped,
        status=result.status,
        error_message="; ".join(result.errors)[:2000] or None,
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def _status(errors: list[str], processed: int) -> str:
    if not errors:
        return "success"
    return "partial_success" if processed else "failed"


def _record_failure(db: Session, result: SyncResult, number: str, message: str) -> None:
    db.rollback()
    result.errors.append(f"{number}: {message}")
    logger.warning("Invoice import failed", invoice=number, error=message)


async def _import_invoice(client: ZohoBooksClient, invoice_repo: InvoiceRepository, summary: dict) -> int:
    invoice_id = summary.get("invoice_id")
    if not invoice_id:
        raise ExternalServiceException("Invoice listed without an invoice_id")
    detail = await client.get_invoice(str(invoice_id))
    return invoice_repo.add_many(invoice_to_lines(detail))


async def sync_invoices(
    db: Session,
    invoice_repo: InvoiceRepository,
    client: Optional[ZohoBooksClient] = None,
    sync_type: str = "full",
    date_start: Optional[date] = None,
    date_end: Optional[date] = None,
) -> SyncResult:
    """Import every invoice not yet stored, page by page."""
    client = client or ZohoBooksClient()
    result = SyncResult(sync_type=sync_type, status="success")
    imported_now: set[str] = set()

    logger.info("Invoice sync started", sync_type=sync_type, date_start=date_start, date_end=date_end)

    try:
        page = 1
        while page <= settings.ZOHO_PAGE_LIMIT:
            invoices, has_more = await client.list_invoices(page=page, date_start=date_start, date_end=date_end)
            for summary in invoices:
                result.records_seen += 1
                number = str(summary.get("invoice_number") or summary.get("invoice_id") or "")
                if not number or number in imported_now or invoice_repo.invoice_exists(number):
                    result.records_skipped += 1
                    continue

                try:
                    result.lines_inserted += await _import_invoice(client, invoice_repo, summary)
                    result.records_imported += 1
                    imported_now.add(number)
                except AppError as e:
                    _record_failure(db, result, number, e.message)
                except SQLAlchemyError as e:
                    _record_failure(db, result, number, describe_db_error(e))
                except (KeyError, TypeError, AttributeError) as e:
                    _record_failure(db, result, number, f"Malformed invoice payload ({e!r})")

                await asyncio.sleep(settings.ZOHO_REQUEST_DELAY)

            if not has_more:
                break
            page += 1
    except AppError as e:
        result.errors.append(e.message)
        logger.error("Invoice sync aborted", sync_type=sync_type, error=e.message)
    except Exception as e:
        db.rollback()
        result.errors.append(f"Unexpected error: {e!r}"[:500])
        logger.exception("Invoice sync crashed", sync_type=sync_type)
        raise
    finally:
        result.status = _status(result.errors, result.records_imported + result.records_skipped)
        result.log_id = _write_log(db, result, result.records_skipped).id

    logger.info(
        "Invoice sync finished",
        sync_type=sync_type,
        status=result.status,
        imported=result.records_imported,
        skipped=result.records_skipped,
        lines=result.lines_inserted,
        errors=len(result.errors),
    )
    return result


async def sync_today(db: Session, invoice_repo: InvoiceRepository, client: Optional[ZohoBooksClient] = None) -> SyncResult:
    today = local_today()
    return await sync_invoices(db, invoice_repo, client, sync_type="today", date_start=today, date_end=today)


async def sync_items(
    db: Session,
    product_repo: ProductRepository,
    client: Optional[ZohoBooksClient] = None,
) -> SyncResult:
    """Upsert product catalog entries (name + category) from Zoho items."""
    client = client or ZohoBooksClient()
    result = SyncResult(sync_type="items", status="success")
    created = 0

    try:
        page = 1
        while page <= settings.ZOHO_PAGE_LIMIT:
            items, has_more = await client.list_items(page=page)
            for item in items:
                result.records_seen += 1
                name = (item.get("name") or item.get("item_name") or "").strip()
                if not name:
                    result.records_skipped += 1
                    continue
                if product_repo.upsert(name, item_category(item), str(item.get("item_id") or "") or None):
                    created += 1
                result.lines_inserted += 1
            product_repo.commit()

            if not has_more:
                break
            page += 1
            await asyncio.sleep(settings.ZOHO_REQUEST_DELAY)
    except AppError as e:
        db.rollback()
        result.errors.append(e.message)
        logger.error("Item sync aborted", error=e.message)
    except SQLAlchemyError as e:
        db.rollback()
        result.errors.append(describe_db_error(e))
        logger.error("Item sync aborted", error=result.errors[-1])
    except Exception as e:
        db.rollback()
        result.errors.append(f"Unexpected error: {e!r}"[:500])
        logger.exception("Item sync crashed")
        raise
    finally:
        result.records_imported = created
        result.status = _status(result.errors, result.lines_inserted)
        result.log_id = _write_log(db, result, result.records_skipped).id

    logger.info("Item sync finished", status=result.status, items=result.lines_inserted, created=created)
    return result


def list_logs(db: Session, limit: int = 20) -> list[SyncLog]:
    return db.query(SyncLog).order_by(SyncLog.created_at.desc(), SyncLog.id.desc()).limit(limit).all()


def get_status(
    db: Session,
    invoice_repo: InvoiceRepository,
    product_repo: ProductRepository,
    client: Optional[ZohoBooksClient] = None,
) -> SyncStatus:
    last = list_logs(db, limit=1)
    return SyncStatus(
        configured=(client or ZohoBooksClient()).configured,
        invoice_lines=invoice_repo.count(),
        invoices=invoice_repo.count_invoices(),
        products=product_repo.count(),
        unique_clients=invoice_repo.count_clients(),
        last_sync=SyncLogRead.model_validate(last[0]) if last else None,
    )
