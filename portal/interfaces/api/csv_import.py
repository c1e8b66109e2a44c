"""CSV import API: preview a file, load it into its own table, list past imports."""

import os

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from portal.interfaces.api.deps import get_current_user, require_admin
from portal.interfaces.api.uploads import save_upload
from portal.interfaces.deps import get_db
from portal.domain.models.user import User
from portal.domain.schemas.csv_import import CsvImportRead, CsvImportResult, CsvPreview
from portal.application.services.csv_importer import list_imports, preview_csv, transform_csv_to_db

router = APIRouter(prefix="/api/csv-import", tags=["CSV Import"])


@router.post("/preview", response_model=CsvPreview)
async def preview(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
):
    file_path = await save_upload(file, ("csv",))
    try:
        return preview_csv(file_path, file.filename)
    finally:
        os.remove(file_path)


@router.post("", response_model=CsvImportResult)
async def import_csv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    file_path = await save_upload(file, ("csv",))
    try:
        return transform_csv_to_db(
            file_path=file_path,
            db=db,
            original_name=file.filename,
            uploaded_by=user.email,
        )
    finally:
        os.remove(file_path)


@router.get("", response_model=list[CsvImportRead])
def get_imports(
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return list_imports(db)
