"""
Tests for draft stores and DraftPersistence.
"""

import threading
from unittest.mock import MagicMock

import pytest

from onboarding.answers import AnswerModel
from onboarding.drafts import (
    DraftPersistence,
    DraftStore,
    FileDraftStore,
    MemoryDraftStore,
    SupabaseDraftStore,
    draft_key,
)
from onboarding.validation import ErrorKind


class BrokenStore(DraftStore):
    """Every operation fails, like a full disk or a dropped connection."""

    def get(self, key):
        raise OSError("storage unavailable")

    def set(self, key, data):
        raise OSError("storage unavailable")

    def delete(self, key):
        raise OSError("storage unavailable")


class TestDraftKey:

    def test_with_user(self):
        assert draft_key("rami_wizard_v2", "u1") == "rami_wizard_v2_u1"

    def test_anonymous(self):
        assert draft_key("rami_wizard_v2") == "rami_wizard_v2"
        assert draft_key("rami_wizard_v2", "") == "rami_wizard_v2"


class TestMemoryDraftStore:

    def test_set_get_delete(self, memory_store):
        memory_store.set("k", {"crop": "Kale"})
        assert "k" in memory_store
        assert memory_store.get("k") == {"crop": "Kale"}
        memory_store.delete("k")
        assert memory_store.get("k") is None

    def test_stored_copy_is_detached(self, memory_store):
        data = {"soil": {"pending_items": ["Gypsum"]}}
        memory_store.set("k", data)
        data["soil"]["pending_items"].append("Limestone")
        assert memory_store.get("k")["soil"]["pending_items"] == ["Gypsum"]

    def test_delete_missing_is_fine(self, memory_store):
        memory_store.delete("nothing")


class TestFileDraftStore:

    def test_roundtrip(self, tmp_path):
        store = FileDraftStore(tmp_path / "drafts")
        store.set("rami_wizard_v2_u1", {"crop": "Rúcula"})
        assert store.get("rami_wizard_v2_u1") == {"crop": "Rúcula"}

    def test_missing(self, tmp_path):
        assert FileDraftStore(tmp_path).get("nope") is None

    def test_key_sanitized(self, tmp_path):
        store = FileDraftStore(tmp_path)
        store.set("ns_../../etc", {"crop": "Kale"})
        files = list(tmp_path.iterdir())
        assert len(files) == 1
        assert files[0].parent == tmp_path

    def test_delete(self, tmp_path):
        store = FileDraftStore(tmp_path)
        store.set("k", {})
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None


class TestSupabaseDraftStore:

    def test_get_missing(self, mock_supabase):
        store = SupabaseDraftStore(client=mock_supabase)
        assert store.get("k") is None
        mock_supabase.table.assert_called_with("wizard_drafts")

    def test_get_found(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=[{"answers": {"crop": "Kale"}}])
        store = SupabaseDraftStore(client=mock_supabase)
        assert store.get("k") == {"crop": "Kale"}
        table.eq.assert_called_with("draft_key", "k")

    def test_set_upserts_on_key(self, mock_supabase):
        store = SupabaseDraftStore(client=mock_supabase)
        store.set("k", {"crop": "Kale"})
        table = mock_supabase.table.return_value
        row = table.upsert.call_args[0][0]
        assert row["draft_key"] == "k"
        assert row["answers"] == {"crop": "Kale"}
        assert "updated_at" in row
        assert table.upsert.call_args[1] == {"on_conflict": "draft_key"}

    def test_delete(self, mock_supabase):
        SupabaseDraftStore(client=mock_supabase).delete("k")
        table = mock_supabase.table.return_value
        table.delete.assert_called_once()
        table.eq.assert_called_with("draft_key", "k")


class TestDraftPersistence:

    def test_load_empty(self, drafts):
        assert drafts.load() is None

    def test_save_then_load(self, drafts):
        drafts.save(AnswerModel(crop="Arugula"))
        assert drafts.load().crop == "Arugula"

    def test_clear(self, drafts):
        drafts.save(AnswerModel(crop="Arugula"))
        drafts.clear()
        assert drafts.load() is None

    def test_corrupt_json_discarded(self, tmp_path):
        store = FileDraftStore(tmp_path)
        (tmp_path / "k.json").write_text("{not json", encoding="utf-8")
        persistence = DraftPersistence(store, "k")
        assert persistence.load() is None
        assert not persistence.memory_only

    def test_schema_mismatch_discarded(self, memory_store):
        memory_store.set("k", {"planting": {"method": "hydroponic"}})
        persistence = DraftPersistence(memory_store, "k")
        assert persistence.load() is None
        assert not persistence.memory_only

        persistence.save(AnswerModel(crop="Kale"))
        assert memory_store.get("k")["crop"] == "Kale"


class TestPersistenceFailure:
    """Storage errors never propagate; the session goes memory-only."""

    def test_load_failure(self):
        failures = []
        persistence = DraftPersistence(BrokenStore(), "k", on_failure=failures.append)
        assert persistence.load() is None
        assert persistence.memory_only
        assert failures[0].kind == ErrorKind.PERSISTENCE_FAILURE

    def test_save_failure_then_memory_only(self):
        store = MagicMock(spec=DraftStore)
        store.set.side_effect = OSError("disk full")
        persistence = DraftPersistence(store, "k")

        persistence.save(AnswerModel(crop="Kale"))
        persistence.save(AnswerModel(crop="Lettuce"))

        assert persistence.memory_only
        assert store.set.call_count == 1
        assert "disk full" in persistence.last_failure.message

    def test_callback_errors_swallowed(self):
        def explode(error):
            raise RuntimeError("ui gone")

        persistence = DraftPersistence(BrokenStore(), "k", on_failure=explode)
        persistence.save(AnswerModel())
        assert persistence.memory_only

    def test_session_logger_notified(self):
        session_logger = MagicMock()
        persistence = DraftPersistence(BrokenStore(), "k", session_logger=session_logger)
        persistence.clear()
        session_logger.persistence_failure.assert_called_once()
        assert session_logger.persistence_failure.call_args[0][0] == "delete"

    def test_session_logger_errors_swallowed(self):
        session_logger = MagicMock()
        session_logger.persistence_failure.side_effect = OSError("disk full (log)")
        persistence = DraftPersistence(BrokenStore(), "k", session_logger=session_logger)

        persistence.save(AnswerModel(crop="Kale"))

        assert persistence.memory_only
        assert "storage unavailable" in persistence.last_failure.message


class TestBackgroundWrites:

    def test_flush_makes_write_visible(self, memory_store):
        persistence = DraftPersistence(memory_store, "k", background=True)
        persistence.save(AnswerModel(crop="Kale"))
        persistence.flush(timeout=5)
        assert memory_store.get("k")["crop"] == "Kale"
        persistence.close()

    def test_last_write_wins(self):
        release = threading.Event()
        written = []

        class SlowStore(MemoryDraftStore):
            def set(self, key, data):
                release.wait(timeout=5)
                written.append(data["crop"])
                super().set(key, data)

        store = SlowStore()
        persistence = DraftPersistence(store, "k", background=True)
        for crop in ("A", "B", "C", "D"):
            persistence.save(AnswerModel(crop=crop))
        release.set()
        persistence.flush(timeout=5)

        assert written[-1] == "D"
        assert store.get("k")["crop"] == "D"
        # First write may already be in flight; the rest collapse into one
        assert len(written) <= 2
        persistence.close()

    def test_save_does_not_block(self):
        release = threading.Event()

        class SlowStore(MemoryDraftStore):
            def set(self, key, data):
                release.wait(timeout=5)
                super().set(key, data)

        persistence = DraftPersistence(SlowStore(), "k", background=True)
        persistence.save(AnswerModel(crop="Kale"))  # Returns while the write is parked
        release.set()
        persistence.close()

    def test_background_failure_reported(self):
        persistence = DraftPersistence(BrokenStore(), "k", background=True)
        persistence.save(AnswerModel())
        persistence.flush(timeout=5)
        assert persistence.memory_only
        persistence.close()
