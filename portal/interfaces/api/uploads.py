"""Spreadsheet upload helpers shared by the import routes."""

import os
import uuid

from fastapi import HTTPException, UploadFile

from portal.config import get_settings

settings = get_settings()


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


async def save_upload(file: UploadFile, allowed: tuple[str, ...]) -> str:
    """Check the extension and write the file under UPLOAD_DIR. Returns the saved path."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    if file_extension(file.filename) not in allowed:
        accepted = ", ".join(f".{ext}" for ext in allowed)
        raise HTTPException(status_code=400, detail=f"Only {accepted} files are accepted")

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    safe_name = f"{uuid.uuid4().hex}_{os.path.basename(file.filename)}"
    file_path = os.path.join(settings.UPLOAD_DIR, safe_name)

    with open(file_path, "wb") as f:
        content = await file.read()
        f.write(content)

    return file_path
