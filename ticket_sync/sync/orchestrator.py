"""Synchronize selected inbox messages into list items."""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from ticket_sync.data_extraction.models import SourceMessage
from ticket_sync.mapping.fields import FieldMapping
from ticket_sync.mapping.resolver import missing_required
from ticket_sync.sync.errors import PreconditionError, PreconditionFailure
from ticket_sync.sync.record_builder import build_record


@dataclass(frozen=True)
class SyncOutcome:
    """Result of syncing a single message."""

    message_id: str
    succeeded: bool
    error_detail: Optional[str] = None
    error_type: Optional[str] = None
    ack_error: Optional[str] = None


@dataclass
class BatchSummary:
    """Aggregate result of one sync batch."""

    outcomes: List[SyncOutcome] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def failures(self) -> List[SyncOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def warnings(self) -> List[str]:
        """Messages that were written but could not be marked as read."""
        return [
            f"{outcome.message_id}: {outcome.ack_error}"
            for outcome in self.outcomes if outcome.ack_error
        ]


@dataclass
class SyncContext:
    """Everything a batch needs, captured when the sync starts."""

    messages: Mapping[str, SourceMessage]
    mapping: FieldMapping
    group_id: Optional[str]
    table_id: Optional[str]
    mail_session: Optional[str]
    store_session: Optional[str]
    write_record: Callable[[Dict[str, str]], object]
    acknowledge: Callable[[str], object]
    cancel_event: Optional[threading.Event] = None


class SyncOrchestrator:
    """Drives the per-message write and acknowledge loop."""

    def check_preconditions(self, message_ids: Sequence[str], context: SyncContext) -> None:
        """Raise PreconditionError for the first unmet condition."""
        if not context.mail_session:
            raise PreconditionError(
                PreconditionFailure.MISSING_MAIL_SESSION,
                "Not signed in to the mailbox",
            )
        if not context.store_session:
            raise PreconditionError(
                PreconditionFailure.MISSING_STORE_SESSION,
                "Not signed in to SharePoint",
            )
        if not message_ids:
            raise PreconditionError(
                PreconditionFailure.NO_MESSAGES_SELECTED,
                "No messages selected",
            )
        if not context.group_id or not context.table_id:
            raise PreconditionError(
                PreconditionFailure.NO_DESTINATION,
                "Select a site and list first",
            )
        missing = missing_required(context.mapping)
        if missing:
            labels = ", ".join(field.label for field in missing)
            raise PreconditionError(
                PreconditionFailure.INVALID_MAPPING,
                f"Map all required fields before syncing (missing: {labels})",
            )

    def sync_batch(self, message_ids: Sequence[str], context: SyncContext) -> BatchSummary:
        """
        Write one list item per selected message, in order.

        A message is marked as read only after its item was written. A
        failed write is recorded and the batch moves on. A failed mark-as-read
        is logged and reported as a warning but the message still counts as
        synced.

        Args:
            message_ids: Selected message ids, in processing order
            context: Messages, mapping, destination and external operations

        Returns:
            BatchSummary with one outcome per processed message

        Raises:
            PreconditionError: before any external call, if the batch cannot start
        """
        self.check_preconditions(message_ids, context)

        mapping = dict(context.mapping)
        messages = dict(context.messages)
        summary = BatchSummary()
        start_time = time.time()

        logger.info(
            f"Starting sync of {len(message_ids)} messages to "
            f"list {context.table_id} on site {context.group_id}"
        )

        for message_id in message_ids:
            if context.cancel_event is not None and context.cancel_event.is_set():
                logger.info("Sync cancelled before next write")
                summary.cancelled = True
                break

            message = messages.get(message_id)
            if message is None:
                logger.debug(f"Message {message_id} no longer in snapshot, skipping")
                summary.skipped_ids.append(message_id)
                continue

            summary.outcomes.append(self._sync_one(message, mapping, context))

        duration = time.time() - start_time
        logger.info(
            f"Sync finished in {duration:.2f}s: {summary.success_count} succeeded, "
            f"{summary.failure_count} failed, {len(summary.skipped_ids)} skipped"
        )
        return summary

    def _sync_one(self, message: SourceMessage, mapping: FieldMapping,
                  context: SyncContext) -> SyncOutcome:
        record = build_record(message, mapping)

        try:
            context.write_record(record)
        except Exception as e:
            logger.error(f"Failed to create item for message {message.id}: {e}")
            return SyncOutcome(
                message_id=message.id,
                succeeded=False,
                error_detail=str(e),
                error_type=type(e).__name__,
            )

        try:
            context.acknowledge(message.id)
        except Exception as e:
            logger.warning(f"Item created but message {message.id} not marked as read: {e}")
            return SyncOutcome(message_id=message.id, succeeded=True, ack_error=str(e))

        logger.debug(f"Synced message {message.id}")
        return SyncOutcome(message_id=message.id, succeeded=True)
