"""Stable hashing utilities."""

import hashlib


def sha256_hex(text: str) -> str:
    """Return the hex SHA256 digest of a UTF-8 string."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def short_md5(text: str, length: int = 8) -> str:
    """Return the first ``length`` hex chars of the MD5 digest of a string."""
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()[:length]
