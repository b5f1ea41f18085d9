"""Build list item fields from an inbox message."""

from typing import Callable, Dict, Optional

from ticket_sync.data_extraction.models import SourceMessage
from ticket_sync.mapping.fields import FIELD_KEYS, FieldMapping
from ticket_sync.sync.derivation import derive_ticket_identifier, extract_sub_field

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "Unknown"
NEW_STATUS = "New"

# Logical field key -> value for a message. None means "leave the column out".
FIELD_DERIVATIONS: Dict[str, Callable[[SourceMessage], Optional[str]]] = {
    "ticketnumber": lambda message: derive_ticket_identifier(message.received_at),
    "subject": lambda message: message.subject or NO_SUBJECT,
    "route": lambda message: extract_sub_field(message.body_preview),
    "description": lambda message: message.body_preview or "",
    "user": lambda message: message.sender_address or UNKNOWN_SENDER,
    "status": lambda message: NEW_STATUS,
}

if set(FIELD_DERIVATIONS) != set(FIELD_KEYS):
    raise RuntimeError("FIELD_DERIVATIONS must cover exactly the field catalog")


def build_record(message: SourceMessage, mapping: FieldMapping) -> Dict[str, str]:
    """
    Compute the column values to write for one message.

    Only mapped fields contribute. A field whose derived value is None (a
    body without a route) is omitted rather than written empty. Mapping
    entries for unknown fields are ignored.

    Args:
        message: Source message
        mapping: Field key to column internal name

    Returns:
        Column internal name to value
    """
    record: Dict[str, str] = {}

    for key, derive in FIELD_DERIVATIONS.items():
        column = mapping.get(key)
        if not column:
            continue
        value = derive(message)
        if value is None:
            continue
        record[column] = value

    return record
