"""Catalogue service: PDF product catalogues kept in the 'catalogues' bucket."""

import re
from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from portal.config import get_settings
from portal.core.exceptions import (
    AppError,
    BusinessRuleViolationException,
    EntityNotFoundException,
)
from portal.domain.models.catalogue import ProductCatalogue
from portal.domain.models.user import User
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.infrastructure.storage import CATALOGUE_BUCKET, LocalStorage, timestamped_key

logger = structlog.get_logger(__name__)
settings = get_settings()

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def title_from_filename(filename: str) -> str:
    """'spring_price-list.pdf' -> 'Spring price list'"""
    stem = re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE)
    title = re.sub(r"[_-]", " ", stem).strip()
    return title[:1].upper() + title[1:] if title else "Catalogue"


def upload_catalogue(
    repo: CatalogueRepository,
    storage: LocalStorage,
    uploader: User,
    filename: str,
    content_type: Optional[str],
    content: bytes,
    title: Optional[str] = None,
) -> ProductCatalogue:
    if not filename.lower().endswith(".pdf") or (content_type and content_type not in PDF_CONTENT_TYPES):
        raise BusinessRuleViolationException("Only PDF files are accepted", details={"content_type": content_type})
    if not content:
        raise BusinessRuleViolationException("The uploaded file is empty")
    if len(content) > settings.CATALOGUE_MAX_BYTES:
        raise BusinessRuleViolationException(
            "File too large",
            details={"max_bytes": settings.CATALOGUE_MAX_BYTES, "size": len(content)},
        )

    key = timestamped_key("pdf")
    file_url = storage.upload(CATALOGUE_BUCKET, key, content)

    try:
        catalogue = repo.create({
            "title": (title or "").strip() or title_from_filename(filename),
            "file_name": key,
            "file_url": file_url,
            "file_size": len(content),
            "uploaded_by": uploader.id,
        })
    except SQLAlchemyError:
        # Keep storage consistent with the table
        repo.rollback()
        storage.remove(CATALOGUE_BUCKET, key)
        logger.exception("Catalogue insert failed, stored file removed", key=key)
        raise

    logger.info("Catalogue uploaded", catalogue_id=catalogue.id, key=key, size=len(content), by=uploader.email)
    return catalogue


def get_catalogue(repo: CatalogueRepository, catalogue_id: int) -> ProductCatalogue:
    catalogue = repo.get_by_id(catalogue_id)
    if catalogue is None:
        raise EntityNotFoundException("Catalogue not found", details={"catalogue_id": catalogue_id})
    return catalogue


def catalogue_path(repo: CatalogueRepository, storage: LocalStorage, catalogue_id: int) -> tuple[ProductCatalogue, Path]:
    catalogue = get_catalogue(repo, catalogue_id)
    if not storage.exists(CATALOGUE_BUCKET, catalogue.file_name):
        raise EntityNotFoundException("Catalogue file is missing from storage", details={"catalogue_id": catalogue_id})
    return catalogue, storage.path(CATALOGUE_BUCKET, catalogue.file_name)


def delete_catalogue(repo: CatalogueRepository, storage: LocalStorage, catalogue_id: int) -> str:
    """Remove the stored file then the row. Returns the deleted title."""
    catalogue = get_catalogue(repo, catalogue_id)
    title, key = catalogue.title, catalogue.file_name

    try:
        storage.remove(CATALOGUE_BUCKET, key)
    except AppError as e:
        logger.warning("Catalogue file removal failed, deleting record anyway", key=key, error=e.message)

    repo.delete(catalogue.id)
    logger.info("Catalogue deleted", catalogue_id=catalogue_id, key=key)
    return title
