"""Resolve and validate mappings between logical fields and list columns."""

from typing import Iterable, List, Optional, Sequence

from loguru import logger

from ticket_sync.data_extraction.models import DestinationColumn
from ticket_sync.mapping.fields import (
    CONTENT_TYPE_COLUMN,
    FIELD_CATALOG,
    FIELD_KEYS,
    FieldMapping,
    LogicalField,
)


def missing_required(mapping: FieldMapping,
                     logical_fields: Sequence[LogicalField] = FIELD_CATALOG) -> List[LogicalField]:
    """Return the required fields that have no column assigned."""
    return [field for field in logical_fields if field.required and not mapping.get(field.key)]


def validate(mapping: FieldMapping,
             logical_fields: Sequence[LogicalField] = FIELD_CATALOG) -> bool:
    """True iff every required field is mapped."""
    return not missing_required(mapping, logical_fields)


def selectable_columns(columns: Iterable[DestinationColumn]) -> List[DestinationColumn]:
    """Columns a user may map to: visible, writable and not the content type."""
    return [
        column for column in columns
        if not column.hidden
        and not column.read_only
        and column.internal_name != CONTENT_TYPE_COLUMN
    ]


def auto_resolve(columns: Sequence[DestinationColumn],
                 logical_fields: Sequence[LogicalField] = FIELD_CATALOG) -> FieldMapping:
    """
    Guess a mapping by matching field keys against column names.

    For each field the internal names are tried first, then the display
    names, both case-insensitively. Columns are scanned in the order given,
    so the first match wins. Fields with no match stay unmapped.

    Args:
        columns: Candidate columns, in the order the directory returned them
        logical_fields: Fields to resolve

    Returns:
        A new, possibly partial, mapping
    """
    mapping: FieldMapping = {}

    for field in logical_fields:
        key = field.key.lower()
        match = _first_match(columns, lambda col: col.internal_name.lower() == key)
        if match is None:
            match = _first_match(
                columns, lambda col: (col.display_name or "").lower() == key
            )
        if match is not None:
            mapping[field.key] = match.internal_name

    logger.debug(f"Auto-resolved {len(mapping)} of {len(logical_fields)} fields: {mapping}")
    return mapping


def _first_match(columns, predicate) -> Optional[DestinationColumn]:
    return next((column for column in columns if predicate(column)), None)


def apply_edit(mapping: FieldMapping, field_key: str,
               column_internal_name: Optional[str]) -> FieldMapping:
    """Return a copy of ``mapping`` with one entry set, or cleared when empty."""
    if field_key not in FIELD_KEYS:
        raise KeyError(f"Unknown field: {field_key}")

    updated = dict(mapping)
    if column_internal_name:
        updated[field_key] = column_internal_name
    else:
        updated.pop(field_key, None)
    return updated


def prune_stale(mapping: FieldMapping,
                columns: Iterable[DestinationColumn]) -> FieldMapping:
    """Drop entries that are empty or name a column the list no longer has."""
    available = {column.internal_name for column in columns}
    pruned = {key: name for key, name in mapping.items() if name and name in available}

    dropped = set(mapping) - set(pruned)
    if dropped:
        logger.warning(f"Dropping stale mapping entries: {sorted(dropped)}")
    return pruned
