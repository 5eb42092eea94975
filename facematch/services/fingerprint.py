"""Deterministic content fingerprints for reference and query images.

A fingerprint is a unit-length 128-dimensional vector synthesised from the
raw bytes of a file. It is not a face embedding: two files only share a
fingerprint when their content, size and path length agree.
"""
import numpy as np

from facematch.exceptions import NoFingerprintError

FINGERPRINT_DIM = 128
MIN_FILE_SIZE = 1024
CHUNK_COUNT = 32

_MASK = 0xFFFFFFFF
_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223

Fingerprint = np.ndarray


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def _split_chunks(content: bytes, count: int = CHUNK_COUNT) -> list[bytes]:
    """Partition content into at most `count` contiguous chunks."""
    if not content:
        return []
    chunk_len = -(-len(content) // count)
    return [content[i:i + chunk_len] for i in range(0, len(content), chunk_len)]


def _mix_content(content: bytes, size: int, path_len: int) -> list[int]:
    """Run the three accumulators over the content and return their states."""
    h1 = (size ^ 0x811C9DC5) & _MASK
    h2 = (size * 0x9E3779B1 + path_len) & _MASK
    h3 = ((path_len * 0x85EBCA6B) ^ size) & _MASK

    for index, chunk in enumerate(_split_chunks(content)):
        for byte in chunk:
            # rotate-multiply-add
            h1 = (_rotl(h1, 5) * 33 + byte + index) & _MASK
            # polynomial
            h2 = (h2 * 31 + byte + 1) & _MASK
            # multiplicative xor
            h3 = ((h3 ^ byte) * 0x01000193) & _MASK
        h3 = (h3 ^ ((index + 1) * 0x9E3779B1)) & _MASK

    return [h1, h2, h3]


def normalize(vector: np.ndarray) -> np.ndarray:
    """L2-normalise a vector; a zero vector is returned unchanged."""
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


def extract_fingerprint(
    path: str, content: bytes, size: int, min_size: int = MIN_FILE_SIZE
) -> Fingerprint:
    """Synthesise a fingerprint from file content.

    Args:
        path: File path, used only for its length
        content: Full file content (or a representative read of it)
        size: File size in bytes
        min_size: Files smaller than this are rejected

    Returns:
        float64 array of length FINGERPRINT_DIM with unit norm

    Raises:
        NoFingerprintError: If the file is below the size gate
    """
    if size < min_size:
        raise NoFingerprintError(f"file too small ({size} bytes, need {min_size})")

    states = _mix_content(content, size, len(path))

    components = np.empty(FINGERPRINT_DIM, dtype=np.float64)
    for i in range(FINGERPRINT_DIM):
        k = i % 3
        states[k] = (states[k] * _LCG_MULTIPLIER + _LCG_INCREMENT) & _MASK
        components[i] = states[k] / _MASK * 2.0 - 1.0

    return normalize(components)
