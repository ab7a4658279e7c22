"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception hierarchy for signature computation, verification and repository lookup.

Configuration-level errors (bad algorithm name, no valid paths) are fatal and raised
before any work starts. Per-file and per-request errors are caught by the commands,
logged, and never abort a run.
"""


class FileSignatureError(Exception):
    """Base class for all filesig errors."""


class UnsupportedAlgorithmError(FileSignatureError, ValueError):
    """Requested hash algorithm is not one of MD5, SHA1, SHA256, SHA512."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Unsupported hash algorithm: '{name}'. "
            f"Supported algorithms: MD5, SHA1, SHA256, SHA512"
        )


class NoValidPathsError(FileSignatureError, ValueError):
    """None of the supplied search paths can be used."""


class HashComputationError(FileSignatureError, OSError):
    """A file could not be read to completion while computing digests."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to hash {path}: {cause}")


class RepositoryRequestError(FileSignatureError, RuntimeError):
    """A repository lookup failed (transport error, non-200 status or bad payload)."""

    def __init__(self, url: str, reason: str, status_code: int = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Repository request to {url} failed: {reason}")


class ReferenceFormatError(FileSignatureError, ValueError):
    """A reference signature file cannot be parsed."""
