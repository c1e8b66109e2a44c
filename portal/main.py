"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from portal.config import get_settings
from portal.infrastructure.database import engine, Base
from portal.core.logging import configure_logging
from portal.core.middleware import setup_middleware
from portal.core.exceptions import register_exception_handlers

# Import all models so SQLAlchemy knows about them
from portal.domain.models.user import User
from portal.domain.models.invoice_line import InvoiceLine
from portal.domain.models.product import Product
from portal.domain.models.forum import ForumPost, ForumReply
from portal.domain.models.catalogue import ProductCatalogue
from portal.domain.models.csv_import import CsvImport
from portal.domain.models.sync_log import SyncLog

# Import routers
from portal.interfaces.api.auth import router as auth_router
from portal.interfaces.api.dashboard import router as dashboard_router
from portal.interfaces.api.purchases import router as purchases_router
from portal.interfaces.api.analytics import router as analytics_router
from portal.interfaces.api.mindmap import router as mindmap_router
from portal.interfaces.api.forum import router as forum_router
from portal.interfaces.api.catalogues import router as catalogues_router
from portal.interfaces.api.products import router as products_router
from portal.interfaces.api.csv_import import router as csv_import_router
from portal.interfaces.api.sync import router as sync_router
from portal.interfaces.api.users import router as users_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info("Starting Phyto Portal...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use Alembic in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    from portal.infrastructure.storage import get_storage
    get_storage()

    # Create default admin user if none exists
    from portal.infrastructure.database import SessionLocal
    from portal.application.services.auth_service import seed_default_admin
    db = SessionLocal()
    try:
        if seed_default_admin(db):
            logger.info("Default admin user created", email=settings.DEFAULT_ADMIN_EMAIL)
    finally:
        db.close()

    # Start scheduler
    from portal.scheduler.jobs import start_scheduler
    start_scheduler()

    yield

    # Shutdown
    from portal.scheduler.jobs import stop_scheduler
    stop_scheduler()
    logger.info("Phyto Portal stopped")


app = FastAPI(
    title="Phyto Portal: Distributor Client & Sales Portal",
    description="API Backend: purchase history, forum, catalogues, sales analytics and Zoho Books sync",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Error envelopes for AppError and unexpected exceptions
register_exception_handlers(app)

# CORS is added last so it runs first on the request.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(purchases_router)
app.include_router(analytics_router)
app.include_router(mindmap_router)
app.include_router(forum_router)
app.include_router(catalogues_router)
app.include_router(products_router)
app.include_router(csv_import_router)
app.include_router(sync_router)
app.include_router(users_router)

# Forum images and catalogue PDFs
app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR, check_dir=False), name="storage")


@app.get("/")
def root():
    return {
        "name": "Phyto Portal",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
