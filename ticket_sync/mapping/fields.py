"""Logical ticket fields that can be mapped onto list columns."""

from typing import Dict, NamedTuple, Tuple

# Logical field key -> list column internal name
FieldMapping = Dict[str, str]

# Internal name of the column SharePoint uses for content types
CONTENT_TYPE_COLUMN = "ContentType"


class LogicalField(NamedTuple):
    key: str
    label: str
    required: bool


FIELD_CATALOG: Tuple[LogicalField, ...] = (
    LogicalField("ticketnumber", "Ticket Number", True),
    LogicalField("subject", "Subject", True),
    LogicalField("route", "Route", False),
    LogicalField("description", "Description", True),
    LogicalField("user", "User", True),
    LogicalField("status", "Status", False),
)

FIELD_KEYS = tuple(field.key for field in FIELD_CATALOG)
