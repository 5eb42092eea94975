"""In-memory fingerprint store keyed by reference filename."""
import logging
import threading
from typing import Iterable

import numpy as np

from facematch.exceptions import DimensionMismatchError, NoFingerprintError, StoreUnavailableError
from facematch.services.fingerprint import FINGERPRINT_DIM, MIN_FILE_SIZE, Fingerprint, extract_fingerprint

logger = logging.getLogger(__name__)


class FingerprintStore:
    """Identity -> fingerprint mapping, replaced wholesale on rebuild.

    Writers build a new dict and swap the reference under a lock, so readers
    that grab the reference once always see a complete mapping. Puts and
    removes that land while a rebuild is enumerating its source are journaled
    and replayed onto the rebuilt mapping before the swap.
    """

    def __init__(self, min_file_size: int = MIN_FILE_SIZE):
        self.min_file_size = min_file_size
        self._entries: dict[str, Fingerprint] = {}
        self._lock = threading.Lock()
        # One rebuild at a time
        self._rebuild_lock = threading.Lock()
        # (identity, fingerprint or None for a removal) while rebuilding
        self._journal: list[tuple[str, Fingerprint | None]] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: str) -> bool:
        return identity in self._entries

    def rebuild(self, entries: Iterable[tuple[str, bytes, int]]) -> int:
        """Replace the store with fingerprints extracted from `entries`.

        Entries that cannot be fingerprinted are skipped. If the source
        cannot be enumerated the current mapping is left untouched.

        Returns:
            Number of fingerprints now stored, or 0 if the source failed
        """
        with self._rebuild_lock:
            with self._lock:
                self._journal = []

            fresh: dict[str, Fingerprint] = {}
            try:
                for identity, content, size in entries:
                    try:
                        fresh[identity] = extract_fingerprint(
                            identity, content, size, min_size=self.min_file_size
                        )
                        logger.debug(f"Loaded fingerprint for: {identity}")
                    except NoFingerprintError as e:
                        logger.warning(f"Skipping {identity}: {e}")
            except StoreUnavailableError as e:
                with self._lock:
                    self._journal = None
                logger.error(f"Rebuild aborted, keeping {len(self._entries)} entries: {e}")
                return 0

            with self._lock:
                for identity, fingerprint in self._journal:
                    if fingerprint is None:
                        fresh.pop(identity, None)
                    else:
                        fresh[identity] = fingerprint
                self._journal = None
                self._entries = fresh

        logger.info(f"Fingerprint store rebuilt with {len(fresh)} entries")
        return len(fresh)

    def put(self, identity: str, fingerprint: Fingerprint) -> None:
        """Insert or overwrite one fingerprint."""
        if len(fingerprint) != FINGERPRINT_DIM:
            raise DimensionMismatchError(FINGERPRINT_DIM, len(fingerprint))
        fingerprint = np.asarray(fingerprint, dtype=np.float64).copy()
        with self._lock:
            updated = dict(self._entries)
            updated[identity] = fingerprint
            self._entries = updated
            if self._journal is not None:
                self._journal.append((identity, fingerprint))

    def remove(self, identity: str) -> bool:
        with self._lock:
            if self._journal is not None:
                self._journal.append((identity, None))
            if identity not in self._entries:
                return False
            updated = dict(self._entries)
            del updated[identity]
            self._entries = updated
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def entries(self) -> list[tuple[str, Fingerprint]]:
        """Snapshot of (identity, fingerprint) pairs in insertion order."""
        return list(self._entries.items())

    def identities(self) -> list[str]:
        return list(self._entries)
