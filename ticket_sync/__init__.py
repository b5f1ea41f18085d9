"""Sync unread mailbox messages into SharePoint list items."""

__version__ = "1.0.0"
