"""Models for the Graph resources the sync reads."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class DirectoryEntry(BaseModel):
    """A SharePoint site or list."""
    model_config = {"populate_by_name": True, "frozen": True}

    id: str
    display_name: Optional[str] = Field(None, alias="displayName")
    internal_name: Optional[str] = Field(None, alias="name")

    @property
    def label(self) -> str:
        return self.display_name or self.internal_name or self.id


class DestinationColumn(BaseModel):
    """A column of a SharePoint list."""
    model_config = {"populate_by_name": True, "frozen": True}

    internal_name: str = Field(..., alias="name")
    display_name: Optional[str] = Field(None, alias="displayName")
    hidden: bool = False
    read_only: bool = Field(False, alias="readOnly")
    description: Optional[str] = None

    @property
    def label(self) -> str:
        label = self.display_name or self.internal_name
        if self.description:
            label = f"{label} ({self.description})"
        return label


class SourceMessage(BaseModel):
    """Snapshot of an inbox message."""
    model_config = {"frozen": True}

    id: str
    subject: Optional[str] = None
    body_preview: Optional[str] = None
    sender_address: Optional[str] = None
    received_at: datetime
    is_read: bool = False

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> "SourceMessage":
        """Build a message from a Graph ``message`` resource."""
        sender = (payload.get("from") or {}).get("emailAddress") or {}
        return cls(
            id=payload["id"],
            subject=payload.get("subject"),
            body_preview=payload.get("bodyPreview"),
            sender_address=sender.get("address"),
            received_at=payload["receivedDateTime"],
            is_read=payload.get("isRead", False),
        )
