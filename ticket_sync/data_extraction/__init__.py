"""Graph access for inbox messages and SharePoint lists."""

from .graph_client import GraphClient
from .models import DestinationColumn, DirectoryEntry, SourceMessage

__all__ = ['GraphClient', 'DestinationColumn', 'DirectoryEntry', 'SourceMessage']
