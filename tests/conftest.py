"""Shared fixtures."""
import io
import random
import pytest
from PIL import Image


def _random_bytes(n: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(n))


@pytest.fixture
def random_bytes():
    """Factory for reproducible random byte strings."""
    return _random_bytes


@pytest.fixture
def image_bytes():
    """Factory for noisy images that compress to well over 1 KB."""
    def _make(seed: int = 0, size: tuple[int, int] = (64, 64), fmt: str = "PNG") -> bytes:
        pixels = _random_bytes(size[0] * size[1] * 3, seed)
        img = Image.frombytes("RGB", size, pixels)
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()
    return _make
