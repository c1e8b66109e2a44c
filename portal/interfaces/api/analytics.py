"""Analytics API: sales report, natural-language query box, smart alerts."""

from fastapi import APIRouter, Depends

from portal.interfaces.api.deps import require_admin
from portal.interfaces.deps import get_invoice_repository, get_product_repository
from portal.domain.repositories.invoice_repository import InvoiceRepository
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.models.user import User
from portal.domain.schemas.analytics import (
    AlertsResponse,
    AnalyticsReport,
    QueryRequest,
    QueryResult,
    Timeframe,
)
from portal.application.services.alert_service import generate_alerts
from portal.application.services.analytics_service import build_report
from portal.application.services.query_responder import QueryResponder

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("", response_model=AnalyticsReport)
def get_report(
    timeframe: Timeframe = "all",
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(require_admin),
):
    return build_report(invoice_repo.list_all(), product_repo.list_catalog(), timeframe)


@router.post("/query", response_model=QueryResult)
def ask(
    body: QueryRequest,
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    user: User = Depends(require_admin),
):
    responder = QueryResponder(invoice_repo.list_all(), product_repo.list_catalog())
    return responder.answer(body.question)


@router.get("/alerts", response_model=AlertsResponse)
def get_alerts(
    invoice_repo: InvoiceRepository = Depends(get_invoice_repository),
    user: User = Depends(require_admin),
):
    return generate_alerts(invoice_repo.list_all())
