"""Tests for journal_website.backend.domain."""

import pytest

from journal_website.backend.domain import (
    AuthError,
    ConflictError,
    Entry,
    EntryUpdate,
    NotFoundError,
    StoreError,
    ValidationError,
    check_text,
)


class TestEntry:
    def test_dict_roundtrip_keeps_owner(self):
        entry = Entry(7, "usr_1", "Trip", "Went hiking", "t1", "t2")
        copy = Entry.from_dict(entry.to_dict())
        assert (copy.id, copy.owner_id, copy.title, copy.content) == (7, "usr_1", "Trip", "Went hiking")

    def test_from_dict_tolerates_legacy_rows(self):
        entry = Entry.from_dict({"id": "1700000000000", "title": "Old", "content": "From the flat file"})
        assert entry.id == 1700000000000
        assert entry.owner_id is None


class TestEntryUpdate:
    def test_only_supplied_fields(self):
        assert EntryUpdate(content="x").fields() == {"content": "x"}
        assert EntryUpdate().is_empty()

    def test_validate_strips(self):
        update = EntryUpdate(title="  New  ").validate()
        assert update.title == "New"
        assert update.content is None

    def test_blank_field_rejected(self):
        with pytest.raises(ValidationError):
            EntryUpdate(title="   ").validate()


class TestErrors:
    @pytest.mark.parametrize(
        "error, status",
        [(ValidationError, 400), (AuthError, 401), (NotFoundError, 404), (ConflictError, 409), (StoreError, 500)],
    )
    def test_status_codes(self, error, status):
        assert error.status_code == status

    def test_check_text(self):
        assert check_text("title", " Trip ") == "Trip"
        with pytest.raises(ValidationError, match="Content cannot be empty"):
            check_text("content", "")
        with pytest.raises(ValidationError):
            check_text("content", None)
