"""Tests for image utilities."""
import io
import pytest
from PIL import Image

from facematch.utils.image_utils import (
    detect_image_format, extensions_from_formats, is_image_filename, sanitize_name
)
from facematch.exceptions import UnsupportedFormatError


def _encode(fmt: str) -> bytes:
    img = Image.new("RGB", (100, 100), color="red")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.mark.parametrize("fmt,extension", [("JPEG", ".jpg"), ("PNG", ".png"), ("BMP", ".bmp")])
def test_detect_supported_formats(fmt, extension):
    """Supported formats map to their stored extension."""
    assert detect_image_format(_encode(fmt)) == extension


def test_detect_unsupported_format():
    """GIF images are rejected."""
    with pytest.raises(UnsupportedFormatError, match="gif"):
        detect_image_format(_encode("GIF"))


def test_detect_non_image():
    """Arbitrary bytes are rejected."""
    with pytest.raises(UnsupportedFormatError):
        detect_image_format(b"definitely not an image")


@pytest.mark.parametrize("name,expected", [
    ("alice.jpg", True),
    ("ALICE.JPEG", True),
    ("scan.Png", True),
    ("old.bmp", True),
    ("notes.txt", False),
    ("jpg", False),
    (".jpg", False),
    ("archive.jpg.zip", False),
])
def test_is_image_filename(name, expected):
    """Extension check is case-insensitive."""
    assert is_image_filename(name) is expected


def test_extensions_from_formats():
    assert extensions_from_formats(["jpg", "PNG", ".bmp"]) == {".jpg", ".png", ".bmp"}


def test_sanitize_name():
    """Non-alphanumerics become underscores."""
    assert sanitize_name("Alice Smith") == "Alice_Smith"
    assert sanitize_name("  bob-o'neil ") == "bob_o_neil"
    assert sanitize_name("carol.jpg") == "carol"


def test_sanitize_blank_name():
    """Blank names get a timestamped default."""
    assert sanitize_name("").startswith("Face_")
    assert sanitize_name(None).startswith("Face_")
    assert sanitize_name("   ").startswith("Face_")
