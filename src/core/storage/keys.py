"""
Object key generation for new uploads.

Keys look like "videos/1718000000000-k3j9x0qa.mov". The millisecond
timestamp plus 8 random base-36 characters make collisions very unlikely.
Uniqueness is probabilistic, which is fine for write-once upload targets
that are never used as primary keys.
"""

import secrets
import string
import time
from typing import Optional

DEFAULT_EXTENSION = "bin"
TOKEN_LENGTH = 8
_TOKEN_ALPHABET = string.digits + string.ascii_lowercase


def random_token(length: int = TOKEN_LENGTH) -> str:
    """Lowercase base-36 token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def file_extension(filename: str) -> str:
    """Trailing extension of a filename, or 'bin' when there is none."""
    if "." not in filename:
        return DEFAULT_EXTENSION
    ext = filename.rsplit(".", 1)[-1]
    return ext or DEFAULT_EXTENSION


def generate_file_key(folder: str, filename: str, *, now: Optional[float] = None) -> str:
    """
    Build a fresh object key for an upload.

    Only the filename's extension is used. The file contents are never
    looked at.

    Args:
        folder: Top-level folder, e.g. "images", "videos", "audio"
        filename: Original client filename
        now: Unix time in seconds (defaults to the current time)
    """
    folder = folder.strip("/")
    if not folder:
        raise ValueError("folder must not be empty")

    millis = int((time.time() if now is None else now) * 1000)
    return f"{folder}/{millis}-{random_token()}.{file_extension(filename)}"
