"""
Pytest configuration and fixtures for ticket sync tests.
"""

import pytest
import tempfile
import shutil
from datetime import datetime
from unittest.mock import Mock

from ticket_sync.data_extraction.graph_client import GraphClient
from ticket_sync.data_extraction.models import DestinationColumn, DirectoryEntry, SourceMessage
from ticket_sync.mapping.store import MappingStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def full_mapping():
    """A mapping with every logical field assigned."""
    return {
        'ticketnumber': 'TicketNumber',
        'subject': 'Title',
        'route': 'Route',
        'description': 'Description',
        'user': 'Requester',
        'status': 'Status',
    }


@pytest.fixture
def sample_columns():
    """Columns as a typical ticket list returns them."""
    return [
        DestinationColumn(name='ContentType', displayName='Content Type'),
        DestinationColumn(name='Title', displayName='Subject'),
        DestinationColumn(name='TicketNumber', displayName='Ticket Number'),
        DestinationColumn(name='Route', displayName='Route'),
        DestinationColumn(name='Description', displayName='Description'),
        DestinationColumn(name='Requester', displayName='User'),
        DestinationColumn(name='Status', displayName='Status'),
        DestinationColumn(name='Modified', displayName='Modified', readOnly=True),
        DestinationColumn(name='_UIVersionString', displayName='Version', hidden=True),
    ]


@pytest.fixture
def sample_messages():
    """Three unread messages, oldest first."""
    return [
        SourceMessage(
            id='m1',
            subject='Printer offline',
            body_preview='Route: US-12 printer on floor 3 is offline',
            sender_address='alice@example.com',
            received_at=datetime(2024, 1, 2, 9, 5),
        ),
        SourceMessage(
            id='m2',
            subject=None,
            body_preview=None,
            sender_address=None,
            received_at=datetime(2024, 1, 2, 9, 30),
        ),
        SourceMessage(
            id='m3',
            subject='VPN drops',
            body_preview='VPN disconnects every hour',
            sender_address='bob@example.com',
            received_at=datetime(2024, 1, 2, 14, 45),
        ),
    ]


@pytest.fixture
def sample_site():
    return DirectoryEntry(id='site-1', displayName='Helpdesk', name='helpdesk')


@pytest.fixture
def sample_list():
    return DirectoryEntry(id='list-1', displayName='Tickets', name='Tickets')


@pytest.fixture
def memory_store():
    """An in-memory mapping store."""
    return MappingStore()


@pytest.fixture
def mock_graph_client(sample_site, sample_list, sample_columns, sample_messages):
    """Create a mock Graph client."""
    client = Mock(spec=GraphClient)
    client.mail_token = 'mail-token'
    client.sites_token = 'sites-token'
    client.list_groups.return_value = [sample_site]
    client.list_tables.return_value = [sample_list]
    client.list_columns.return_value = sample_columns
    client.list_unread_messages.return_value = sample_messages
    client.create_record.return_value = {'id': '1'}
    client.mark_consumed.return_value = None
    return client


class MockResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code=200, payload=None, reason='OK'):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def mock_response():
    """Factory for MockResponse objects."""
    return MockResponse
