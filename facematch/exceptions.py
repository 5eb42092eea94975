"""Custom exceptions for face matching."""


class FaceMatchError(Exception):
    """Base exception."""
    pass


class NoFingerprintError(FaceMatchError):
    def __init__(self, reason: str = "file too small or unreadable"):
        super().__init__(f"No fingerprint could be extracted: {reason}.")
        self.reason = reason


class DimensionMismatchError(FaceMatchError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Fingerprint length mismatch: expected {expected}, got {actual}.")
        self.expected = expected
        self.actual = actual


class StoreUnavailableError(FaceMatchError):
    def __init__(self, path: str, reason: str = ""):
        message = f"Reference directory unavailable: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path


class UnsupportedFormatError(FaceMatchError):
    def __init__(self, fmt: str):
        super().__init__(f"Unsupported format: {fmt}. Use JPEG, PNG, or BMP.")
