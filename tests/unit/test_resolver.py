"""
Unit tests for mapping validation and auto-resolution.
"""

import pytest

from ticket_sync.data_extraction.models import DestinationColumn
from ticket_sync.mapping.fields import FIELD_CATALOG
from ticket_sync.mapping.resolver import (
    apply_edit,
    auto_resolve,
    missing_required,
    prune_stale,
    selectable_columns,
    validate,
)


@pytest.mark.unit
class TestValidate:
    """Test cases for mapping validation."""

    def test_full_mapping_is_valid(self, full_mapping):
        assert validate(full_mapping) is True

    @pytest.mark.parametrize("required_key", ["ticketnumber", "subject", "description", "user"])
    def test_missing_required_field_is_invalid(self, full_mapping, required_key):
        del full_mapping[required_key]

        assert validate(full_mapping) is False

    def test_optional_fields_not_needed(self, full_mapping):
        del full_mapping["route"]
        del full_mapping["status"]

        assert validate(full_mapping) is True

    def test_empty_entry_counts_as_missing(self, full_mapping):
        full_mapping["subject"] = ""

        assert validate(full_mapping) is False

    def test_missing_required_names_fields_in_catalog_order(self):
        missing = missing_required({"subject": "Title"})

        assert [field.key for field in missing] == ["ticketnumber", "description", "user"]


@pytest.mark.unit
class TestAutoResolve:
    """Test cases for auto_resolve."""

    def test_exact_internal_name_only(self):
        columns = [
            DestinationColumn(name="Ticket_x0020_Number"),
            DestinationColumn(name="subject"),
        ]

        mapping = auto_resolve(columns)

        assert mapping == {"subject": "subject"}
        assert validate(mapping) is False

    def test_matches_display_name(self):
        columns = [DestinationColumn(name="Title", displayName="Subject")]

        assert auto_resolve(columns) == {"subject": "Title"}

    def test_internal_name_beats_earlier_display_name(self):
        columns = [
            DestinationColumn(name="field_1", displayName="Status"),
            DestinationColumn(name="STATUS"),
        ]

        assert auto_resolve(columns)["status"] == "STATUS"

    def test_first_match_in_column_order(self):
        columns = [
            DestinationColumn(name="field_1", displayName="User"),
            DestinationColumn(name="field_2", displayName="user"),
        ]

        assert auto_resolve(columns)["user"] == "field_1"

    def test_no_match_leaves_field_unmapped(self):
        columns = [DestinationColumn(name="Unrelated", displayName="Something")]

        assert auto_resolve(columns) == {}

    def test_idempotent(self, sample_columns):
        assert auto_resolve(sample_columns) == auto_resolve(sample_columns)

    def test_resolves_sample_list(self, sample_columns):
        mapping = auto_resolve(selectable_columns(sample_columns))

        assert mapping == {
            "ticketnumber": "TicketNumber",
            "subject": "Title",
            "route": "Route",
            "description": "Description",
            "user": "Requester",
            "status": "Status",
        }

    def test_only_considers_given_fields(self, sample_columns):
        subset = [field for field in FIELD_CATALOG if field.key == "status"]

        assert auto_resolve(sample_columns, subset) == {"status": "Status"}


@pytest.mark.unit
class TestApplyEdit:
    """Test cases for apply_edit."""

    def test_sets_entry_without_mutating(self):
        original = {"subject": "Title"}

        updated = apply_edit(original, "user", "Requester")

        assert updated == {"subject": "Title", "user": "Requester"}
        assert original == {"subject": "Title"}

    @pytest.mark.parametrize("cleared", ["", None])
    def test_clears_entry(self, cleared):
        assert apply_edit({"subject": "Title"}, "subject", cleared) == {}

    def test_clearing_absent_entry_is_noop(self):
        assert apply_edit({"subject": "Title"}, "route", None) == {"subject": "Title"}

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            apply_edit({}, "priority", "Priority")


@pytest.mark.unit
class TestColumnFiltering:
    """Test cases for selectable_columns and prune_stale."""

    def test_excludes_hidden_read_only_and_content_type(self, sample_columns):
        names = [column.internal_name for column in selectable_columns(sample_columns)]

        assert names == ["Title", "TicketNumber", "Route", "Description", "Requester", "Status"]

    def test_prune_drops_missing_columns(self, sample_columns):
        mapping = {"subject": "Title", "route": "OldRoute", "user": ""}

        assert prune_stale(mapping, sample_columns) == {"subject": "Title"}

    def test_prune_keeps_valid_mapping(self, full_mapping, sample_columns):
        assert prune_stale(full_mapping, sample_columns) == full_mapping
