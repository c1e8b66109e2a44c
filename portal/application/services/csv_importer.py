"""CSV importer: loads an arbitrary CSV file into a table named after the file.

Handles:
- Encoding detection (UTF-8, Latin-1, Windows-1252 exports)
- Separator detection (semicolon, tab, comma)
- Header cleanup (whitespace and surrounding quotes)
- Creating the table on first import (id + one TEXT column per header)
- Appending rows to an existing table with the same headers
"""

import io
import os
import re
from typing import Optional

import pandas as pd
import structlog
from sqlalchemy import Column, Integer, MetaData, Table, Text, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.exceptions import BusinessRuleViolationException
from portal.domain.models.csv_import import CsvImport
from portal.infrastructure.database import Base, describe_db_error

logger = structlog.get_logger(__name__)

ENCODINGS = ["utf-8-sig", "latin-1", "cp1252"]
SEPARATORS = [";", "\t", ","]
PREVIEW_ROWS = 5


def table_name_for(filename: str) -> str:
    """'Ventes 2024.csv' -> 'ventes_2024'"""
    stem = re.sub(r"\.csv$", "", os.path.basename(filename), flags=re.IGNORECASE)
    name = re.sub(r"[^a-z0-9_]", "_", stem.lower())
    if not name.strip("_"):
        raise BusinessRuleViolationException("Cannot derive a table name from the file name", details={"filename": filename})
    if name[0].isdigit():
        name = f"t_{name}"
    return name


def _clean_header(value: str, index: int) -> str:
    header = str(value).strip().strip('"').strip("'").strip()
    if not header or header.startswith("Unnamed:"):
        header = f"column_{index + 1}"
    # 'id' is the generated primary key
    if header.lower() == "id":
        header = "csv_id"
    return header


def _decode(raw: bytes) -> str:
    for encoding in ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode("latin-1", errors="replace")


def _detect_separator(header_line: str) -> str:
    counts = {sep: header_line.count(sep) for sep in SEPARATORS}
    best = max(SEPARATORS, key=lambda sep: counts[sep])
    return best if counts[best] > 0 else ","


def read_csv(file_path: str) -> pd.DataFrame:
    """Read a CSV as text columns with cleaned, unique headers."""
    with open(file_path, "rb") as f:
        text = _decode(f.read())

    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise BusinessRuleViolationException("CSV must contain a header row and at least one data row")

    sep = _detect_separator(lines[0])
    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except pd.errors.ParserError as e:
        raise BusinessRuleViolationException("Could not parse CSV file", details={"error": str(e)[:300]}) from e

    headers: list[str] = []
    for i, col in enumerate(df.columns):
        header = _clean_header(col, i)
        while header in headers:
            header = f"{header}_{i + 1}"
        headers.append(header)
    df.columns = headers

    df = df.apply(lambda col: col.str.strip())
    df = df.mask(df == "").dropna(how="all")
    if df.empty:
        raise BusinessRuleViolationException("CSV has no data rows")
    return df


def _records(df: pd.DataFrame) -> list[dict]:
    """Rows as dicts with missing cells as None."""
    return df.astype(object).where(pd.notnull(df), None).to_dict(orient="records")


def preview_csv(file_path: str, original_name: str) -> dict:
    df = read_csv(file_path)
    return {
        "table_name": table_name_for(original_name),
        "headers": list(df.columns),
        "row_count": len(df),
        "rows": _records(df.head(PREVIEW_ROWS)),
    }


def _ensure_table(db: Session, table_name: str, headers: list[str]) -> Table:
    if table_name in Base.metadata.tables:
        raise BusinessRuleViolationException(
            f"'{table_name}' is reserved by the portal; rename the file",
            details={"table_name": table_name},
        )

    conn = db.connection()
    table = Table(
        table_name,
        MetaData(),
        Column("id", Integer, primary_key=True, autoincrement=True),
        *[Column(header, Text) for header in headers],
    )

    if inspect(conn).has_table(table_name):
        existing = [c["name"] for c in inspect(conn).get_columns(table_name) if c["name"] != "id"]
        if set(existing) != set(headers):
            raise BusinessRuleViolationException(
                "Table structure mismatch: the CSV headers differ from the existing table",
                details={"table_name": table_name, "existing_columns": existing, "csv_columns": headers},
            )
    else:
        table.create(bind=conn)
        logger.info("CSV table created", table_name=table_name, columns=len(headers))

    return table


def _mark_failed(db: Session, record: CsvImport, message: str) -> None:
    db.rollback()
    record.status = "failed"
    record.error_message = message[:1000]
    db.commit()
    logger.warning("CSV import failed", table_name=record.table_name, error=message)


def transform_csv_to_db(
    file_path: str,
    db: Session,
    original_name: str,
    uploaded_by: Optional[str] = None,
) -> dict:
    """Read a CSV and insert its rows into the table named after the file."""
    if not original_name.lower().endswith(".csv"):
        raise BusinessRuleViolationException("Only .csv files are accepted")

    table_name = table_name_for(original_name)
    record = CsvImport(
        table_name=table_name,
        original_name=original_name,
        uploaded_by=uploaded_by,
        status="processing",
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    try:
        df = read_csv(file_path)
        headers = list(df.columns)
        table = _ensure_table(db, table_name, headers)

        rows = _records(df)
        db.execute(table.insert(), rows)

        record.row_count = len(rows)
        record.columns = ",".join(headers)
        record.status = "completed"
        db.commit()

        logger.info("CSV imported", table_name=table_name, rows=len(rows), by=uploaded_by)
        return {
            "import_id": record.id,
            "table_name": table_name,
            "row_count": len(rows),
            "columns": headers,
            "status": "completed",
        }

    except BusinessRuleViolationException as e:
        _mark_failed(db, record, e.message)
        raise
    except SQLAlchemyError as e:
        message = describe_db_error(e)
        _mark_failed(db, record, message)
        raise BusinessRuleViolationException(
            "Database error while importing CSV", details={"error": message[:300]}
        ) from e


def list_imports(db: Session, limit: int = 50) -> list[CsvImport]:
    return db.query(CsvImport).order_by(CsvImport.created_at.desc(), CsvImport.id.desc()).limit(limit).all()
