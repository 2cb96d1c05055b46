"""Conversion between the record shape and the storage shape of a product.

The record shape is what the rest of the application and the HTTP API see
(camelCase keys, as produced by ``Product.model_dump(by_alias=True)``). The
storage shape is what the ``products`` table holds (snake_case columns).

Both directions use one explicit key table, so the mapping is total and
``from_storage_shape(to_storage_shape(record)) == record`` for every record.
Unknown keys are rejected instead of being converted by guesswork.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

RECORD_TO_STORAGE: dict[str, str] = {
    "id": "id",
    "gtin": "gtin",
    "productName": "product_name",
    "brand": "brand",
    "category": "category",
    "description": "description",
    "weight": "weight",
    "origin": "origin",
    "imageUrl": "image_url",
    "extraTables": "extra_tables",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

STORAGE_TO_RECORD: dict[str, str] = {
    storage: record for record, storage in RECORD_TO_STORAGE.items()
}

_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _rename(values: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    unknown = sorted(set(values) - set(mapping))
    if unknown:
        raise KeyError(f"no storage mapping for keys: {', '.join(unknown)}")
    return {mapping[key]: value for key, value in values.items()}


def _copy_extra_tables(tables: list[dict[str, Any]] | None) -> list[dict[str, Any]] | None:
    # Extra table keys (title, rows, key, value) are identical in both shapes;
    # user data inside them is never renamed.
    if tables is None:
        return None
    return [
        {
            "title": table["title"],
            "rows": [{"key": row["key"], "value": row["value"]} for row in table["rows"]],
        }
        for table in tables
    ]


def _as_utc(value: Any) -> Any:
    # SQLite hands back naive datetimes for timezone-aware columns
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_storage_shape(record: dict[str, Any]) -> dict[str, Any]:
    """Convert a record-shaped dict to table column values."""
    row = _rename(record, RECORD_TO_STORAGE)
    if "extra_tables" in row:
        row["extra_tables"] = _copy_extra_tables(row["extra_tables"])
    return row


def from_storage_shape(row: dict[str, Any]) -> dict[str, Any]:
    """Convert table column values to a record-shaped dict."""
    values = dict(row)
    for column in _TIMESTAMP_COLUMNS:
        if column in values:
            values[column] = _as_utc(values[column])
    if "extra_tables" in values:
        values["extra_tables"] = _copy_extra_tables(values["extra_tables"])
    return _rename(values, STORAGE_TO_RECORD)
