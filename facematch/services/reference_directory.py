"""Sources of reference images for the fingerprint store."""
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from facematch.exceptions import StoreUnavailableError
from facematch.utils.image_utils import IMAGE_EXTENSIONS, is_image_filename

logger = logging.getLogger(__name__)


@dataclass
class ReferenceImage:
    """A file in the reference directory."""
    filename: str
    path: str
    size: int
    loaded: bool = False


class ReferenceDirectory:
    """Local directory of reference images (one file per identity)."""

    def __init__(self, path: str, extensions: set[str] | None = None):
        self.path = Path(path)
        self.extensions = extensions or IMAGE_EXTENSIONS

    def ensure_exists(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def image_files(self) -> list[Path]:
        """Image files directly under the directory, sorted by name.

        Raises:
            StoreUnavailableError: If the directory cannot be listed
        """
        try:
            if not self.path.exists():
                logger.info(f"Creating reference directory: {self.path}")
                self.ensure_exists()
                return []
            files = [
                f for f in self.path.iterdir()
                if f.is_file() and not f.is_symlink() and is_image_filename(f.name, self.extensions)
            ]
        except OSError as e:
            raise StoreUnavailableError(str(self.path), str(e)) from e
        return sorted(files, key=lambda f: f.name)

    def iter_entries(self) -> Iterator[tuple[str, bytes, int]]:
        """Yield (filename, content, size) for every reference image.

        Unreadable files are skipped; a failing directory aborts iteration.
        """
        files = self.image_files()
        logger.info(f"Found {len(files)} image files in {self.path}")
        for f in files:
            try:
                content = f.read_bytes()
            except OSError as e:
                logger.error(f"Failed to read {f.name}: {e}")
                continue
            yield f.name, content, len(content)

    def list_images(self) -> list[ReferenceImage]:
        """Reference images with their sizes.

        Raises:
            StoreUnavailableError: If the directory or a file cannot be read
        """
        images = []
        for f in self.image_files():
            try:
                size = f.stat().st_size
            except OSError as e:
                raise StoreUnavailableError(str(self.path), str(e)) from e
            images.append(ReferenceImage(filename=f.name, path=str(f), size=size))
        return images

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def _get_unique_filename(self, filename: str) -> Path:
        """Get unique filename, adding suffix if exists."""
        dest = self.path / filename
        if not dest.exists():
            return dest

        stem = Path(filename).stem
        suffix = Path(filename).suffix
        counter = 1
        while dest.exists():
            dest = self.path / f"{stem}_{counter}{suffix}"
            counter += 1
        return dest

    def write(self, filename: str, content: bytes) -> Path:
        """Write content under a filename that does not clobber existing files."""
        self.ensure_exists()
        dest = self._get_unique_filename(filename)
        dest.write_bytes(content)
        logger.info(f"Added reference image: {dest.name}")
        return dest

    def delete(self, filename: str) -> bool:
        """Delete a reference image by filename. Returns False if absent."""
        target = self.path / Path(filename).name
        if not target.is_file():
            return False
        target.unlink()
        logger.info(f"Removed reference image: {target.name}")
        return True


class DemoReferenceSource:
    """DEMO ONLY: fake reference set filled with seeded random bytes.

    Stands in for a real directory when previewing the service without any
    reference images. Matching against it is deterministic for a given seed.
    """

    names = ("alice.jpg", "bob.jpg", "charlie.jpg")

    def __init__(self, seed: int = 0, size: int = 4096):
        self.seed = seed
        self.size = size
        self.path = Path("<demo>")

    def _content(self, name: str) -> bytes:
        rng = random.Random(f"{self.seed}:{name}")
        return bytes(rng.getrandbits(8) for _ in range(self.size))

    def iter_entries(self) -> Iterator[tuple[str, bytes, int]]:
        logger.info("Using simulated demo reference set")
        for name in self.names:
            yield name, self._content(name), self.size

    def list_images(self) -> list[ReferenceImage]:
        return [ReferenceImage(filename=n, path=f"<demo>/{n}", size=self.size) for n in self.names]

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write(self, filename: str, content: bytes) -> Path:
        raise StoreUnavailableError("<demo>", "demo reference set is read-only")

    def delete(self, filename: str) -> bool:
        raise StoreUnavailableError("<demo>", "demo reference set is read-only")
