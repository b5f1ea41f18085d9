#!/usr/bin/env python3
"""
Sync unread Outlook messages into a SharePoint list from the command line.

Usage:
    python sync_tickets.py sites
    python sync_tickets.py lists --site SITE_ID
    python sync_tickets.py mapping --site SITE_ID --list LIST_ID [--set key=Column ...] [--save]
    python sync_tickets.py inbox [--limit 20]
    python sync_tickets.py sync --site SITE_ID --list LIST_ID [--message ID ...] [--dry-run]
    python sync_tickets.py clear

Tokens are read from GRAPH_MAIL_TOKEN and GRAPH_SITES_TOKEN.
"""

import sys
import argparse
from pathlib import Path
from loguru import logger

# Add package root to path
sys.path.append(str(Path(__file__).parent.parent))

from ticket_sync.data_extraction import GraphClient, DirectoryEntry
from ticket_sync.mapping import FIELD_CATALOG, JsonFileMappingStore
from ticket_sync.session import TicketSyncSession
from ticket_sync.sync.errors import GraphAPIError, PreconditionError
from ticket_sync.sync.record_builder import build_record
from ticket_sync.utils import config


def setup_logging(verbose: bool = False):
    """Configure loguru sinks from the logging config."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else config.logging.level,
               format=config.logging.format)
    if config.logging.file:
        logger.add(
            config.logging.file,
            rotation=config.logging.rotation,
            retention=config.logging.retention,
            level="DEBUG",
        )


def build_session() -> TicketSyncSession:
    client = GraphClient()
    store = JsonFileMappingStore(config.storage.mapping_store_path)
    return TicketSyncSession(client, store)


def find_site(session: TicketSyncSession, site_id: str) -> DirectoryEntry:
    """Look a site up by id so its name is known when the selection is saved."""
    site = next((g for g in session.load_groups() if g.id == site_id), None)
    if site is None:
        logger.warning(f"Site {site_id} not found in site search, using its id as the name")
        site = DirectoryEntry(id=site_id)
    return site


def select_destination(session: TicketSyncSession, site_id, list_id) -> None:
    """Select site and list by id, or fall back to the last saved selection."""
    if not site_id:
        if config.sync.restore_last_selection and session.restore_last_selection():
            if session.table is not None:
                return
        raise SystemExit("Pass --site and --list (no previous selection saved)")

    session.select_group(find_site(session, site_id))
    if list_id:
        table = next((t for t in session.tables if t.id == list_id), DirectoryEntry(id=list_id))
        session.select_table(table)


def print_mapping(session: TicketSyncSession) -> None:
    columns = {column.internal_name: column for column in session.columns}
    print(f"Mapping for list {session.table.label if session.table else '-'}:")
    for field in FIELD_CATALOG:
        marker = "*" if field.required else " "
        column_name = session.mapping.get(field.key)
        shown = columns[column_name].label if column_name in columns else "-- not mapped --"
        print(f"  {marker} {field.label:15s} -> {shown}")
    if not session.mapping_is_valid:
        missing = ", ".join(field.label for field in session.missing_fields)
        print(f"  Missing required fields: {missing}")


def cmd_sites(session, args):
    for site in session.load_groups():
        print(f"{site.id}\t{site.label}")


def cmd_lists(session, args):
    for table in session.select_group(find_site(session, args.site)):
        print(f"{table.id}\t{table.label}")


def cmd_mapping(session, args):
    select_destination(session, args.site, args.list)
    if args.auto:
        session.auto_map()
    for assignment in args.set or []:
        key, _, column = assignment.partition("=")
        try:
            session.update_mapping(key.strip(), column.strip() or None)
        except (KeyError, ValueError) as e:
            logger.error(f"Invalid mapping edit {assignment}: {e}")
            return 2
    print_mapping(session)
    if args.save:
        session.save_mapping()
        print("Mapping saved.")


def cmd_inbox(session, args):
    for message in session.refresh_messages(args.limit):
        print(f"{message.id}\t{message.received_at:%Y-%m-%d %H:%M}\t"
              f"{message.sender_address or 'Unknown'}\t{message.subject or '(No Subject)'}")


def cmd_sync(session, args):
    select_destination(session, args.site, args.list)
    session.refresh_messages(args.limit)

    if args.message:
        for message_id in args.message:
            session.toggle_message(message_id)
    else:
        session.select_all()

    if args.dry_run:
        logger.info("DRY RUN MODE - No changes will be made")
        messages = {message.id: message for message in session.messages}
        for message_id in session.selected_ids:
            if message_id not in messages:
                print(f"{message_id}: not an unread message, skipped")
                continue
            print(f"{message_id}: {build_record(messages[message_id], session.mapping)}")
        return 0

    summary = session.sync()
    print(f"Synced {summary.success_count} message(s), {summary.failure_count} failed.")
    for outcome in summary.failures:
        print(f"  FAILED {outcome.message_id}: {outcome.error_detail}")
    for warning in summary.warnings:
        print(f"  WARNING not marked as read {warning}")
    return 1 if summary.failure_count else 0


def cmd_clear(session, args):
    session.clear_saved_state()
    print("Saved mappings and selections cleared.")


def main():
    """Main function for the ticket sync CLI."""
    parser = argparse.ArgumentParser(description="Sync unread mail into a SharePoint list")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sites", help="List SharePoint sites")

    lists_parser = subparsers.add_parser("lists", help="List the lists of a site")
    lists_parser.add_argument("--site", required=True, help="Site id")

    mapping_parser = subparsers.add_parser("mapping", help="Show or edit the field mapping")
    mapping_parser.add_argument("--site", help="Site id")
    mapping_parser.add_argument("--list", help="List id")
    mapping_parser.add_argument("--auto", action="store_true", help="Re-run automatic mapping")
    mapping_parser.add_argument("--set", action="append", metavar="FIELD=COLUMN",
                                help="Map a field to a column internal name (empty clears)")
    mapping_parser.add_argument("--save", action="store_true", help="Persist the mapping")

    inbox_parser = subparsers.add_parser("inbox", help="List unread messages")
    inbox_parser.add_argument("--limit", type=int, help="Maximum messages to fetch")

    sync_parser = subparsers.add_parser("sync", help="Create list items from unread messages")
    sync_parser.add_argument("--site", help="Site id")
    sync_parser.add_argument("--list", help="List id")
    sync_parser.add_argument("--message", action="append", help="Message id to sync (default: all)")
    sync_parser.add_argument("--limit", type=int, help="Maximum messages to fetch")
    sync_parser.add_argument("--dry-run", action="store_true", help="Show records without writing")

    subparsers.add_parser("clear", help="Forget saved mappings and selections")

    args = parser.parse_args()
    setup_logging(args.verbose)

    commands = {
        "sites": cmd_sites,
        "lists": cmd_lists,
        "mapping": cmd_mapping,
        "inbox": cmd_inbox,
        "sync": cmd_sync,
        "clear": cmd_clear,
    }

    try:
        session = build_session()
        return commands[args.command](session, args) or 0
    except PreconditionError as e:
        logger.error(e.message)
        return 2
    except GraphAPIError as e:
        logger.error(f"Graph request failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
