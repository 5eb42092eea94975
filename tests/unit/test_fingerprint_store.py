"""Unit tests for the in-memory fingerprint store."""
import numpy as np
import pytest

from facematch.services.fingerprint import FINGERPRINT_DIM, extract_fingerprint
from facematch.services.fingerprint_store import FingerprintStore
from facematch.exceptions import DimensionMismatchError, StoreUnavailableError


@pytest.fixture
def entries(random_bytes):
    """Five candidate files, two of them below the size gate."""
    return [
        ("alice.jpg", random_bytes(4096, seed=1), 4096),
        ("tiny.jpg", random_bytes(100, seed=2), 100),
        ("bob.png", random_bytes(2048, seed=3), 2048),
        ("empty.bmp", b"", 0),
        ("carol.jpeg", random_bytes(1500, seed=4), 1500),
    ]


class TestRebuild:
    """Tests for rebuild."""

    def test_skips_failed_entries(self, entries):
        """Entries that fail extraction are skipped, the rest stored."""
        store = FingerprintStore()
        count = store.rebuild(entries)

        assert count == 3
        assert set(store.identities()) == {"alice.jpg", "bob.png", "carol.jpeg"}

    def test_replaces_previous_entries(self, entries):
        """Rebuild drops entries not in the new source."""
        store = FingerprintStore()
        store.put("stale.jpg", np.ones(FINGERPRINT_DIM))

        store.rebuild(entries)

        assert "stale.jpg" not in store
        assert len(store) == 3

    def test_fingerprints_match_extractor(self, entries):
        """Stored fingerprints equal direct extraction."""
        store = FingerprintStore()
        store.rebuild(entries)

        stored = dict(store.entries())
        name, content, size = entries[0]
        assert np.array_equal(stored[name], extract_fingerprint(name, content, size))

    def test_unavailable_source_keeps_prior_state(self, entries):
        """A failing source leaves the previous mapping in place."""
        store = FingerprintStore()
        store.rebuild(entries)

        def failing():
            yield "dave.jpg", b"x" * 2048, 2048
            raise StoreUnavailableError("/FaceDB", "permission denied")

        count = store.rebuild(failing())

        assert count == 0
        assert set(store.identities()) == {"alice.jpg", "bob.png", "carol.jpeg"}

    def test_snapshot_unaffected_by_rebuild(self, entries):
        """A snapshot taken before rebuild keeps its entries."""
        store = FingerprintStore()
        store.rebuild(entries)
        snapshot = store.entries()

        store.rebuild([])

        assert len(snapshot) == 3
        assert len(store) == 0

    def test_custom_min_file_size(self, entries):
        """Store passes its size gate to the extractor."""
        store = FingerprintStore(min_file_size=50)

        assert store.rebuild(entries) == 4

    def test_put_during_rebuild_survives(self, entries):
        """A put made while the source is enumerated is kept after the swap."""
        store = FingerprintStore()
        added = np.ones(FINGERPRINT_DIM) / np.sqrt(FINGERPRINT_DIM)

        def source():
            yield entries[0]
            store.put("new.jpg", added)
            yield entries[2]

        store.rebuild(source())

        assert set(store.identities()) == {"alice.jpg", "bob.png", "new.jpg"}
        assert np.array_equal(dict(store.entries())["new.jpg"], added)

    def test_remove_during_rebuild_applied(self, entries):
        """A remove made while the source is enumerated is kept after the swap."""
        store = FingerprintStore()
        store.rebuild(entries)

        def source():
            yield entries[0]
            store.remove("alice.jpg")
            yield entries[2]

        count = store.rebuild(source())

        assert count == 1
        assert store.identities() == ["bob.png"]

    def test_writes_after_failed_rebuild_not_journaled(self, entries):
        """After an aborted rebuild, later writes go straight to the store."""
        store = FingerprintStore()

        def failing():
            raise StoreUnavailableError("/FaceDB")
            yield

        store.rebuild(failing())
        store.put("alice.jpg", np.zeros(FINGERPRINT_DIM))
        store.rebuild(entries[2:3])

        assert store.identities() == ["bob.png"]


class TestMutations:
    """Tests for put, remove, clear and entries."""

    def test_put_and_overwrite(self):
        """Put overwrites an existing identity."""
        store = FingerprintStore()
        store.put("alice.jpg", np.zeros(FINGERPRINT_DIM))
        store.put("alice.jpg", np.ones(FINGERPRINT_DIM))

        assert len(store) == 1
        assert np.array_equal(dict(store.entries())["alice.jpg"], np.ones(FINGERPRINT_DIM))

    def test_put_rejects_wrong_length(self):
        """Put refuses fingerprints that are not 128 long."""
        store = FingerprintStore()

        with pytest.raises(DimensionMismatchError):
            store.put("bad.jpg", np.zeros(64))
        assert len(store) == 0

    def test_put_copies_input(self):
        """Mutating the caller's array does not change the store."""
        store = FingerprintStore()
        fp = np.zeros(FINGERPRINT_DIM)
        store.put("alice.jpg", fp)
        fp[0] = 5.0

        assert dict(store.entries())["alice.jpg"][0] == 0.0

    def test_remove(self):
        """Remove reports whether an entry existed."""
        store = FingerprintStore()
        store.put("alice.jpg", np.zeros(FINGERPRINT_DIM))

        assert store.remove("alice.jpg") is True
        assert store.remove("alice.jpg") is False
        assert "alice.jpg" not in store

    def test_clear(self):
        """Clear empties the store."""
        store = FingerprintStore()
        store.put("a.jpg", np.zeros(FINGERPRINT_DIM))
        store.put("b.jpg", np.zeros(FINGERPRINT_DIM))

        store.clear()

        assert len(store) == 0
        assert store.entries() == []

    def test_entries_preserve_insertion_order(self):
        """Entries come back in insertion order."""
        store = FingerprintStore()
        for name in ["c.jpg", "a.jpg", "b.jpg"]:
            store.put(name, np.zeros(FINGERPRINT_DIM))

        assert [name for name, _ in store.entries()] == ["c.jpg", "a.jpg", "b.jpg"]
