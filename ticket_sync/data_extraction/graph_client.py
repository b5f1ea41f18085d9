"""Microsoft Graph client for mailbox and SharePoint list access."""

from typing import Any, Dict, List, Optional, Type
from urllib.parse import quote

import requests
from loguru import logger

from ..sync.errors import AckError, GraphAPIError, WriteError
from ..utils.config import config
from .models import DestinationColumn, DirectoryEntry, SourceMessage


class GraphClient:
    """Client for the Graph endpoints the ticket sync uses.

    Mail and SharePoint calls use separate bearer tokens, since they are
    granted under different scopes.
    """

    def __init__(self, mail_token: Optional[str] = None,
                 sites_token: Optional[str] = None,
                 graph_config=None):
        self.graph_config = graph_config or config.graph
        self.base_url = self.graph_config.base_url.rstrip("/")
        self.mail_token = mail_token if mail_token is not None else config.auth.mail_token
        self.sites_token = sites_token if sites_token is not None else config.auth.sites_token
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, url: str, token: Optional[str],
                 error_class: Type[GraphAPIError] = GraphAPIError,
                 **kwargs) -> requests.Response:
        """Issue a request, raising ``error_class`` on any failure."""
        if not url.startswith("http"):
            url = f"{self.base_url}{url}"
        headers = {"Authorization": f"Bearer {token or ''}"}

        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.graph_config.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise error_class(f"Graph request failed: {e}") from e

        if not response.ok:
            raise error_class(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        return message or f"Graph API error: {response.status_code} {response.reason}"

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        """Decode a successful response body, raising GraphAPIError if it is not JSON."""
        try:
            return response.json()
        except ValueError as e:
            raise GraphAPIError(
                f"Graph returned an invalid JSON body: {e}", status_code=response.status_code
            ) from e

    def _get_collection(self, url: str, token: Optional[str]) -> List[Dict[str, Any]]:
        """GET a collection, following ``@odata.nextLink`` pages."""
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url

        while next_url:
            data = self._json(self._request("GET", next_url, token))
            items.extend(data.get("value", []))
            next_url = data.get("@odata.nextLink")

        return items

    def list_groups(self) -> List[DirectoryEntry]:
        """List SharePoint sites visible to the user."""
        sites = self._get_collection("/sites?search=*", self.sites_token)
        logger.info(f"Retrieved {len(sites)} sites")
        return [DirectoryEntry(**site) for site in sites]

    def list_tables(self, group_id: str) -> List[DirectoryEntry]:
        """List the lists of a site."""
        lists = self._get_collection(f"/sites/{group_id}/lists", self.sites_token)
        logger.info(f"Retrieved {len(lists)} lists for site {group_id}")
        return [DirectoryEntry(**entry) for entry in lists]

    def list_columns(self, group_id: str, table_id: str) -> List[DestinationColumn]:
        """List the columns of a list, in the order Graph returns them."""
        columns = self._get_collection(
            f"/sites/{group_id}/lists/{table_id}/columns", self.sites_token
        )
        logger.info(f"Retrieved {len(columns)} columns for list {table_id}")
        return [DestinationColumn(**column) for column in columns]

    def list_unread_messages(self, limit: Optional[int] = None) -> List[SourceMessage]:
        """List unread inbox messages, oldest received first."""
        limit = limit or self.graph_config.unread_limit
        url = (
            "/me/mailFolders/inbox/messages"
            f"?$filter={quote('isRead eq false')}&$top={limit}"
            f"&$orderby={quote('receivedDateTime asc')}"
        )
        data = self._json(self._request("GET", url, self.mail_token))
        messages = [SourceMessage.from_graph(item) for item in data.get("value", [])]
        logger.info(f"Retrieved {len(messages)} unread messages")
        return messages

    def create_record(self, group_id: str, table_id: str, fields: Dict[str, str]) -> Dict[str, Any]:
        """Create a list item. Raises WriteError if Graph rejects it."""
        logger.debug(f"Creating item in list {table_id}: {fields}")
        response = self._request(
            "POST",
            f"/sites/{group_id}/lists/{table_id}/items",
            self.sites_token,
            error_class=WriteError,
            json={"fields": fields},
        )
        try:
            return response.json()
        except ValueError:
            return {}

    def mark_consumed(self, message_id: str) -> None:
        """Mark a message as read. Raises AckError on failure."""
        self._request(
            "PATCH",
            f"/me/messages/{message_id}",
            self.mail_token,
            error_class=AckError,
            json={"isRead": True},
        )

    def test_connection(self) -> bool:
        """Check that both tokens are accepted."""
        try:
            self._request("GET", "/me", self.mail_token)
            self._request("GET", "/sites/root", self.sites_token)
            logger.info("Graph connection test successful")
            return True
        except GraphAPIError as e:
            logger.error(f"Graph connection test failed: {e}")
            return False
