"""Dashboards: navigation tiles and counters for admins and clients."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.application.services.rollup import line_total, summarize_lines
from portal.domain.models.user import User
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.domain.repositories.forum_repository import ForumRepository
from portal.domain.repositories.invoice_repository import InvoiceRepository

ADMIN_TILES = [
    {"key": "analytics", "title": "Analytics", "path": "/analytics"},
    {"key": "mindmap", "title": "Mind Map", "path": "/mindmap"},
    {"key": "forum", "title": "Forum", "path": "/forum"},
    {"key": "catalogues", "title": "Catalogues", "path": "/catalogues"},
]

ADMIN_SETTINGS_TILES = [
    {"key": "sync-manager", "title": "Sync Manager", "path": "/sync-manager"},
    {"key": "zoho", "title": "Zoho Integration", "path": "/zoho"},
    {"key": "csv-upload", "title": "CSV Upload", "path": "/csv-upload"},
    {"key": "catalogue-upload", "title": "Catalogue Management", "path": "/catalogue-upload"},
    {"key": "users", "title": "User Management", "path": "/users"},
]

CLIENT_TILES = [
    {"key": "purchase-history", "title": "Purchase History", "path": "/purchase-history"},
    {"key": "forum", "title": "Forum", "path": "/forum"},
    {"key": "catalogues", "title": "Catalogues", "path": "/catalogues"},
]


def admin_dashboard(
    db: Session,
    user: User,
    invoice_repo: InvoiceRepository,
    forum_repo: ForumRepository,
    catalogue_repo: CatalogueRepository,
) -> dict:
    lines = invoice_repo.list_all()
    return {
        "role": user.role,
        "user": {"name": user.name, "email": user.email},
        "tiles": ADMIN_TILES,
        "settings_tiles": ADMIN_SETTINGS_TILES,
        "stats": {
            "users": db.query(func.count(User.id)).scalar() or 0,
            "clients": invoice_repo.count_clients(),
            "invoice_lines": len(lines),
            "invoices": invoice_repo.count_invoices(),
            "catalogues": catalogue_repo.count(),
            "forum_posts": forum_repo.count(),
            "total_revenue": round(sum(line_total(line) for line in lines), 2),
        },
    }


def client_dashboard(
    user: User,
    invoice_repo: InvoiceRepository,
    forum_repo: ForumRepository,
    catalogue_repo: CatalogueRepository,
) -> dict:
    summary = summarize_lines(invoice_repo.list_for_client(user.name))
    return {
        "role": user.role,
        "user": {"name": user.name, "email": user.email},
        "tiles": CLIENT_TILES,
        "stats": {
            "total_spent": summary.total_spent,
            "total_orders": summary.total_orders,
            "total_items": summary.total_items,
            "recent_order_date": summary.most_recent_order,
            "recent_forum_activity": forum_repo.latest_activity(user.email),
            "catalogues_count": catalogue_repo.count(),
        },
    }
