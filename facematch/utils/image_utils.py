"""Image utilities."""
import io
import re
import time
from PIL import Image, UnidentifiedImageError

from facematch.exceptions import UnsupportedFormatError

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp"}

# PIL format name -> file extension used when storing references
_FORMAT_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "BMP": ".bmp",
}


def is_image_filename(name: str, extensions: set[str] = IMAGE_EXTENSIONS) -> bool:
    """Check extension case-insensitively."""
    dot = name.rfind(".")
    return dot > 0 and name[dot:].lower() in extensions


def extensions_from_formats(formats: list[str]) -> set[str]:
    """Turn config formats like ["jpg", "PNG"] into {".jpg", ".png"}."""
    return {f".{fmt.lower().lstrip('.')}" for fmt in formats}


def detect_image_format(content: bytes) -> str:
    """Return the file extension matching the image content.

    Raises:
        UnsupportedFormatError: If content is not a JPEG, PNG or BMP image
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            fmt = img.format or "unknown"
    except (UnidentifiedImageError, OSError):
        raise UnsupportedFormatError("unknown")

    if fmt not in _FORMAT_EXTENSIONS:
        raise UnsupportedFormatError(fmt.lower())
    return _FORMAT_EXTENSIONS[fmt]


def sanitize_name(name: str | None) -> str:
    """Make a filesystem-safe reference name; blank names get a timestamp."""
    name = (name or "").strip()
    if not name:
        return f"Face_{int(time.time() * 1000)}"
    if is_image_filename(name):
        name = name[:name.rfind(".")]
    return re.sub(r"[^a-zA-Z0-9]", "_", name)
