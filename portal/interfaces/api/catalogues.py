"""Catalogue API routes: list, count, download, upload and delete PDF catalogues."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse

from portal.interfaces.api.deps import get_current_user, require_admin
from portal.interfaces.deps import get_catalogue_repository
from portal.domain.repositories.catalogue_repository import CatalogueRepository
from portal.domain.models.user import User
from portal.domain.schemas.catalogue import CatalogueCount, CatalogueRead
from portal.infrastructure.storage import LocalStorage, get_storage
from portal.application.services.catalogue_service import catalogue_path, delete_catalogue, upload_catalogue

router = APIRouter(prefix="/api/catalogues", tags=["Catalogues"])


@router.get("", response_model=list[CatalogueRead])
def list_catalogues(
    repo: CatalogueRepository = Depends(get_catalogue_repository),
    user: User = Depends(get_current_user),
):
    return repo.list_recent()


@router.get("/count", response_model=CatalogueCount)
def count_catalogues(
    repo: CatalogueRepository = Depends(get_catalogue_repository),
    user: User = Depends(get_current_user),
):
    return CatalogueCount(count=repo.count())


@router.get("/{catalogue_id}/download")
def download_catalogue(
    catalogue_id: int,
    repo: CatalogueRepository = Depends(get_catalogue_repository),
    storage: LocalStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    catalogue, path = catalogue_path(repo, storage, catalogue_id)
    return FileResponse(path, media_type="application/pdf", filename=f"{catalogue.title}.pdf")


@router.post("", response_model=CatalogueRead, status_code=status.HTTP_201_CREATED)
async def upload(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    repo: CatalogueRepository = Depends(get_catalogue_repository),
    storage: LocalStorage = Depends(get_storage),
    user: User = Depends(require_admin),
):
    content = await file.read()
    return upload_catalogue(
        repo,
        storage,
        user,
        filename=file.filename or "",
        content_type=file.content_type,
        content=content,
        title=title,
    )


@router.delete("/{catalogue_id}")
def remove_catalogue(
    catalogue_id: int,
    repo: CatalogueRepository = Depends(get_catalogue_repository),
    storage: LocalStorage = Depends(get_storage),
    user: User = Depends(require_admin),
):
    title = delete_catalogue(repo, storage, catalogue_id)
    return {"message": f"Catalogue '{title}' deleted", "id": catalogue_id}
