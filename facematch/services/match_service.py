"""Matching service: fingerprint store plus its reference image source."""
import logging
from pathlib import Path

from facematch.exceptions import NoFingerprintError
from facematch.services.classifier import (
    HIGH_THRESHOLD, LOW_THRESHOLD, MatchDecision, MatchOutcome, classify, select_best
)
from facematch.services.fingerprint import MIN_FILE_SIZE, extract_fingerprint
from facematch.services.fingerprint_store import FingerprintStore
from facematch.services.reference_directory import (
    DemoReferenceSource, ReferenceDirectory, ReferenceImage
)
from facematch.services.scorer import score
from facematch.utils.config_loader import get_config
from facematch.utils.image_utils import detect_image_format, extensions_from_formats, sanitize_name

logger = logging.getLogger(__name__)

NO_FINGERPRINT_MESSAGE = "No face detected in input image"


class MatchService:
    """Matches query images against fingerprints of a reference directory.

    Build one per process and pass it to callers; the store starts empty
    until `reload()` is called.
    """

    def __init__(self, reference_dir: str | None = None, demo: bool | None = None):
        cfg = get_config()
        storage = cfg.get("storage", {})
        matching = cfg.get("matching", {})
        formats = cfg.get("files", {}).get("allowed_formats", ["jpg", "jpeg", "png", "bmp"])

        self.min_file_size = int(matching.get("min_file_size", MIN_FILE_SIZE))
        self.high_threshold = float(matching.get("high_threshold", HIGH_THRESHOLD))
        self.low_threshold = float(matching.get("low_threshold", LOW_THRESHOLD))

        if demo is None:
            demo = bool(storage.get("demo_mode", False))
        if demo:
            self.source = DemoReferenceSource()
        else:
            self.source = ReferenceDirectory(
                reference_dir or storage.get("reference_dir", "./FaceDB"),
                extensions_from_formats(formats),
            )
        self.store = FingerprintStore(self.min_file_size)

    @property
    def reference_dir(self) -> str:
        return str(self.source.path)

    def reload(self) -> int:
        """Rebuild the store from the reference source."""
        count = self.store.rebuild(self.source.iter_entries())
        logger.info(f"Face database loaded with {count} faces")
        return count

    def match(self, content: bytes, size: int, path: str) -> MatchDecision:
        """Match one query image against a snapshot of the store."""
        try:
            query = extract_fingerprint(path, content, size, min_size=self.min_file_size)
        except NoFingerprintError as e:
            logger.warning(f"No fingerprint for {path}: {e}")
            return MatchDecision(MatchOutcome.UNMATCHED, error=NO_FINGERPRINT_MESSAGE)

        entries = self.store.entries()
        best = select_best(
            (identity, score(query, fingerprint)) for identity, fingerprint in entries
        )
        decision = classify(best, high=self.high_threshold, low=self.low_threshold)

        if best is not None:
            logger.info(
                f"Best candidate {best[0]} scored {best[1].combined:.3f} "
                f"against {len(entries)} entries -> {decision.outcome.value}"
            )
        return decision

    def match_file(self, image_path: str) -> MatchDecision:
        """Match an image file given by path.

        Reference images are fingerprinted under their bare filename, so the
        query is too.
        """
        if not self.source.exists(image_path):
            logger.warning(f"Image file not found: {image_path}")
            return MatchDecision(MatchOutcome.UNMATCHED, error=f"Image file not found: {image_path}")

        try:
            content = self.source.read(image_path)
        except OSError as e:
            logger.error(f"Failed to read {image_path}: {e}")
            return MatchDecision(MatchOutcome.UNMATCHED, error=NO_FINGERPRINT_MESSAGE)

        return self.match(content, len(content), Path(image_path).name)

    def add_reference(self, content: bytes, name: str | None = None) -> str:
        """Store a new reference image and register its fingerprint.

        Returns:
            Filename the image was stored under

        Raises:
            UnsupportedFormatError: If content is not a supported image
            NoFingerprintError: If the image is below the size gate
        """
        extension = detect_image_format(content)
        if len(content) < self.min_file_size:
            raise NoFingerprintError(f"file too small ({len(content)} bytes, need {self.min_file_size})")

        dest = self.source.write(f"{sanitize_name(name)}{extension}", content)
        fingerprint = extract_fingerprint(dest.name, content, len(content), min_size=self.min_file_size)
        self.store.put(dest.name, fingerprint)
        return dest.name

    def remove_reference(self, filename: str) -> bool:
        """Delete a reference image and drop its fingerprint."""
        name = Path(filename).name
        deleted = self.source.delete(name)
        removed = self.store.remove(name)
        return deleted or removed

    def list_references(self) -> list[ReferenceImage]:
        images = self.source.list_images()
        for image in images:
            image.loaded = image.filename in self.store
        return images
