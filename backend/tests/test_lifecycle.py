"""Tests for per-filename delete semantics."""

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

from errors import InvalidInput, StoreFailure
from indexer import index_document
from lifecycle import delete_by_filename, remove_file
from registry import InMemoryRegistry


class TestDeleteByFilename:

    def test_unknown_filename_returns_empty_and_skips_index(self):
        index = MagicMock()
        assert delete_by_filename("missing.txt", index, InMemoryRegistry()) == []
        index.delete_by_ids.assert_not_called()

    def test_empty_registered_list_skips_index(self):
        index = MagicMock()
        registry = InMemoryRegistry()
        registry.put("empty.txt", [])
        assert delete_by_filename("empty.txt", index, registry) == []
        index.delete_by_ids.assert_not_called()

    def test_deletes_exactly_registered_ids(self):
        index = MagicMock()
        registry = InMemoryRegistry()
        registry.put("n.txt", ["n.txt-0", "n.txt-1"])
        assert delete_by_filename("n.txt", index, registry) == ["n.txt-0", "n.txt-1"]
        index.delete_by_ids.assert_called_once_with(["n.txt-0", "n.txt-1"])

    def test_leaves_registry_entry_for_caller(self):
        registry = InMemoryRegistry()
        registry.put("n.txt", ["n.txt-0"])
        delete_by_filename("n.txt", MagicMock(), registry)
        assert registry.get("n.txt") == ["n.txt-0"]


class TestRemoveFile:

    def test_index_then_remove(self, services):
        index_document("A.\n\nB.", "notes.txt", services)
        deleted = remove_file("notes.txt", services)
        assert deleted == ["notes.txt-0", "notes.txt-1"]
        assert services.index.count() == 0
        assert services.registry.get("notes.txt") is None

    def test_remove_twice_second_is_empty(self, services):
        index_document("A.", "once.txt", services)
        remove_file("once.txt", services)
        assert remove_file("once.txt", services) == []

    def test_missing_filename(self, services):
        with pytest.raises(InvalidInput) as exc:
            remove_file("", services)
        assert exc.value.message == "Missing filename"

    def test_index_error_becomes_store_failure(self, services):
        index_document("A.", "x.txt", services)
        services.index.delete_by_ids = MagicMock(side_effect=ConnectionError("gone"))
        with pytest.raises(StoreFailure):
            remove_file("x.txt", services)
        # Registry still points at the vectors that could not be deleted.
        assert services.registry.get("x.txt") == ["x.txt-0"]

    def test_release_error_after_delete_returns_ids(self, services):
        index_document("A.\n\nB.", "notes.txt", services)

        @contextmanager
        def _lock_lost_on_release(filename):
            yield
            raise RuntimeError("lock no longer owned")

        services.registry.lock = _lock_lost_on_release
        assert remove_file("notes.txt", services) == ["notes.txt-0", "notes.txt-1"]
        assert services.index.count() == 0
        assert services.registry.get("notes.txt") is None
