"""Values derived from raw message attributes."""

import re
from datetime import datetime
from typing import Optional

ROUTE_PATTERN = re.compile(r"route:\s*(\S+)", re.IGNORECASE)


def derive_ticket_identifier(received_at: datetime) -> str:
    """Format a received time as ``YYYYMMDDHHmm`` in local wall-clock time.

    Aware datetimes are converted to the local zone first; naive ones are
    assumed to be local already. Messages received within the same minute
    share an identifier.
    """
    if received_at.tzinfo is not None:
        received_at = received_at.astimezone()
    return (
        f"{received_at.year:04d}{received_at.month:02d}{received_at.day:02d}"
        f"{received_at.hour:02d}{received_at.minute:02d}"
    )


def extract_sub_field(body_text: Optional[str]) -> Optional[str]:
    """Return the token following the first ``route:`` marker, if any."""
    if not body_text:
        return None
    match = ROUTE_PATTERN.search(body_text)
    return match.group(1) if match else None
