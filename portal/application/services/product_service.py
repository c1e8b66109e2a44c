"""Product catalog import: item exports (CSV or XLSX) into the 'products' lookup table.

Handles:
- Reading .xlsx (first sheet) and .csv files in the usual export encodings
- Mapping export headers ("Item ID", "Item Name", "CF.Category", ...) to fields
- Upserting by item id, or by name when the export has no id column
"""

from typing import Optional

import pandas as pd
import structlog

from portal.core.exceptions import BusinessRuleViolationException
from portal.domain.repositories.product_repository import ProductRepository
from portal.domain.schemas.product import ProductImportResult

logger = structlog.get_logger(__name__)

# Export column name → catalog field
COLUMN_MAP = {
    "Item ID": "item_id",
    "Item Name": "item_name",
    "Name": "item_name",
    "Product": "item_name",
    "CF.Category": "category",
    "Category": "category",
    "Catégorie": "category",
}

EMPTY_VALUES = ("", "nan", "none", "#n/a", "-")


def _clean(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if s.lower() in EMPTY_VALUES:
        return None
    # Numeric ids come back from Excel as floats
    if s.endswith(".0") and s[:-2].isdigit():
        s = s[:-2]
    return s


def _read_csv_with_encoding(file_path: str) -> pd.DataFrame:
    """Try the common export encodings and separators until more than one column comes out."""
    for encoding in ("utf-8-sig", "latin-1", "cp1252"):
        for sep in (",", ";"):
            try:
                df = pd.read_csv(file_path, encoding=encoding, sep=sep, dtype=str)
            except (UnicodeDecodeError, pd.errors.ParserError):
                continue
            if len(df.columns) > 1:
                return df
    return pd.read_csv(file_path, encoding="latin-1", sep=None, engine="python", dtype=str)


def _rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    rename_map = {}
    for original_col, field in COLUMN_MAP.items():
        if field in rename_map.values():
            continue
        for df_col in df.columns:
            if str(df_col).strip().upper() == original_col.upper():
                rename_map[df_col] = field
                break
    df = df.rename(columns=rename_map)
    if "item_name" not in df.columns:
        raise BusinessRuleViolationException(
            "No item name column found",
            details={"expected_one_of": [k for k, v in COLUMN_MAP.items() if v == "item_name"]},
        )
    return df[[c for c in ("item_id", "item_name", "category") if c in df.columns]]


def import_products(file_path: str, original_name: str, repo: ProductRepository) -> ProductImportResult:
    ext = original_name.rsplit(".", 1)[-1].lower() if "." in original_name else ""
    if ext == "xlsx":
        df = pd.read_excel(file_path, engine="openpyxl", sheet_name=0, dtype=str)
    elif ext == "csv":
        df = _read_csv_with_encoding(file_path)
    else:
        raise BusinessRuleViolationException("Only .xlsx and .csv files are accepted")

    df = _rename_columns(df.dropna(how="all"))

    created = updated = skipped = 0
    for _, row in df.iterrows():
        name = _clean(row.get("item_name"))
        if not name:
            skipped += 1
            continue
        if repo.upsert(name, _clean(row.get("category")), _clean(row.get("item_id"))):
            created += 1
        else:
            updated += 1

    repo.commit()
    logger.info("Product catalog imported", file=original_name, created=created, updated=updated, skipped=skipped)
    return ProductImportResult(created=created, updated=updated, skipped=skipped, row_count=len(df))
