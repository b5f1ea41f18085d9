"""Stateful sync session driven by a user interface or the CLI."""

import threading
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ticket_sync.data_extraction.graph_client import GraphClient
from ticket_sync.data_extraction.models import DestinationColumn, DirectoryEntry, SourceMessage
from ticket_sync.mapping import resolver
from ticket_sync.mapping.fields import FieldMapping, LogicalField
from ticket_sync.mapping.store import MappingStore
from ticket_sync.sync.errors import PreconditionError, PreconditionFailure
from ticket_sync.sync.orchestrator import BatchSummary, SyncContext, SyncOrchestrator


class TicketSyncSession:
    """Holds the current site/list selection, mapping and inbox snapshot.

    The mapping for a list is loaded from the store when the list is
    selected, or auto-resolved if none was saved. Edits stay local until
    ``save_mapping`` is called.
    """

    def __init__(self, client: GraphClient, store: MappingStore,
                 orchestrator: Optional[SyncOrchestrator] = None):
        self.client = client
        self.store = store
        self.orchestrator = orchestrator or SyncOrchestrator()

        self.groups: List[DirectoryEntry] = []
        self.tables: List[DirectoryEntry] = []
        self.columns: List[DestinationColumn] = []
        self.group: Optional[DirectoryEntry] = None
        self.table: Optional[DirectoryEntry] = None

        self.mapping: FieldMapping = {}
        self.mapping_dirty = False

        self.messages: List[SourceMessage] = []
        self.selected_ids: List[str] = []

        self.cancel_event = threading.Event()
        self._sync_lock = threading.Lock()
        self._syncing = False

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def mapping_is_valid(self) -> bool:
        return resolver.validate(self.mapping)

    @property
    def missing_fields(self) -> List[LogicalField]:
        return resolver.missing_required(self.mapping)

    @property
    def mappable_columns(self) -> List[DestinationColumn]:
        return resolver.selectable_columns(self.columns)

    def _ensure_idle(self) -> None:
        if self._syncing:
            raise PreconditionError(
                PreconditionFailure.SYNC_IN_PROGRESS,
                "A sync is in progress; wait for it to finish",
            )

    # Destination selection

    def load_groups(self) -> List[DirectoryEntry]:
        self.groups = self.client.list_groups()
        return self.groups

    def select_group(self, group: DirectoryEntry) -> List[DirectoryEntry]:
        """Select a site and fetch its lists. Clears the list selection."""
        self._ensure_idle()
        # Fetch first so a failure leaves the previous selection intact
        tables = self.client.list_tables(group.id)

        self.group = group
        self.tables = tables
        self.table = None
        self.columns = []
        self.mapping = {}
        self.mapping_dirty = False
        self.store.save_last_selection("group", group.id, group.label)
        return self.tables

    def select_table(self, table: DirectoryEntry) -> FieldMapping:
        """Select a list, fetch its columns and load or auto-resolve its mapping."""
        self._ensure_idle()
        if self.group is None:
            raise PreconditionError(PreconditionFailure.NO_DESTINATION, "Select a site first")

        columns = self.client.list_columns(self.group.id, table.id)

        self.table = table
        self.columns = columns
        self.store.save_last_selection("table", table.id, table.label)

        saved = self.store.load(self.group.id, table.id)
        if saved is not None:
            logger.info(f"Loaded saved mapping for list {table.label}")
            self.mapping = resolver.prune_stale(saved, self.mappable_columns)
            self.mapping_dirty = False
        else:
            logger.info(f"No saved mapping for list {table.label}, auto-resolving")
            self.mapping = resolver.auto_resolve(self.mappable_columns)
            self.mapping_dirty = bool(self.mapping)

        return self.mapping

    def restore_last_selection(self) -> bool:
        """Reselect the site and list used last time, if they still exist."""
        last_group = self.store.load_last_selection("group")
        if not last_group:
            return False

        if not self.groups:
            self.load_groups()
        group = next((g for g in self.groups if g.id == last_group["id"]), None)
        if group is None:
            logger.warning(f"Last selected site {last_group['name']} is no longer available")
            return False
        self.select_group(group)

        last_table = self.store.load_last_selection("table")
        if not last_table:
            return True
        table = next((t for t in self.tables if t.id == last_table["id"]), None)
        if table is None:
            logger.warning(f"Last selected list {last_table['name']} is no longer available")
            return True
        self.select_table(table)
        return True

    # Mapping edits

    def update_mapping(self, field_key: str, column_internal_name: Optional[str]) -> FieldMapping:
        """Set or clear one mapping entry without saving it."""
        self._ensure_idle()
        if column_internal_name and column_internal_name not in {
            column.internal_name for column in self.mappable_columns
        }:
            raise ValueError(f"Column {column_internal_name} is not available on this list")

        self.mapping = resolver.apply_edit(self.mapping, field_key, column_internal_name)
        self.mapping_dirty = True
        return self.mapping

    def auto_map(self) -> FieldMapping:
        """Replace the current mapping with an auto-resolved one, unsaved."""
        self._ensure_idle()
        self.mapping = resolver.auto_resolve(self.mappable_columns)
        self.mapping_dirty = True
        return self.mapping

    def save_mapping(self) -> None:
        """Persist the current mapping for the selected site and list."""
        self._ensure_idle()
        if self.group is None or self.table is None:
            raise PreconditionError(PreconditionFailure.NO_DESTINATION, "Select a site and list first")
        if not self.mapping_is_valid:
            labels = ", ".join(field.label for field in self.missing_fields)
            raise PreconditionError(
                PreconditionFailure.INVALID_MAPPING,
                f"Map all required fields before saving (missing: {labels})",
            )
        self.store.save(self.group.id, self.table.id, self.mapping)
        self.mapping_dirty = False
        logger.info(f"Saved mapping for list {self.table.label}")

    def clear_saved_state(self) -> None:
        """Forget all saved mappings and selections."""
        self._ensure_idle()
        self.store.clear_all()
        self.mapping_dirty = bool(self.mapping)

    # Messages

    def refresh_messages(self, limit: Optional[int] = None) -> List[SourceMessage]:
        """Replace the inbox snapshot and drop selections that disappeared."""
        self.messages = self.client.list_unread_messages(limit)
        known = {message.id for message in self.messages}
        self.selected_ids = [message_id for message_id in self.selected_ids if message_id in known]
        return self.messages

    def toggle_message(self, message_id: str) -> None:
        if message_id in self.selected_ids:
            self.selected_ids.remove(message_id)
        else:
            self.selected_ids.append(message_id)

    def select_all(self) -> None:
        self.selected_ids = [message.id for message in self.messages]

    def clear_selection(self) -> None:
        self.selected_ids = []

    # Sync

    def build_context(self) -> SyncContext:
        group_id = self.group.id if self.group else None
        table_id = self.table.id if self.table else None

        def write_record(fields: Dict[str, str]):
            return self.client.create_record(group_id, table_id, fields)

        return SyncContext(
            messages={message.id: message for message in self.messages},
            mapping=dict(self.mapping),
            group_id=group_id,
            table_id=table_id,
            mail_session=self.client.mail_token,
            store_session=self.client.sites_token,
            write_record=write_record,
            acknowledge=self.client.mark_consumed,
            cancel_event=self.cancel_event,
        )

    def sync(self, message_ids: Optional[Sequence[str]] = None,
             refresh: bool = True) -> BatchSummary:
        """
        Sync the given (or currently selected) messages.

        Mapping edits are refused while the batch runs. On completion the
        selection is cleared and, unless ``refresh`` is False, the inbox
        snapshot is reloaded.
        """
        ids = list(message_ids if message_ids is not None else self.selected_ids)

        with self._sync_lock:
            self._ensure_idle()
            self._syncing = True
        self.cancel_event.clear()

        try:
            summary = self.orchestrator.sync_batch(ids, self.build_context())
        finally:
            self._syncing = False

        self.clear_selection()
        if refresh:
            try:
                self.refresh_messages()
            except Exception as e:
                logger.error(f"Failed to refresh messages after sync: {e}")
        return summary

    def cancel(self) -> None:
        """Stop the running sync before its next write."""
        self.cancel_event.set()
