"""Content addressing for deployable artifacts."""

import hashlib

__all__ = ["content_hash"]


def content_hash(data: bytes) -> str:
    """Return the hex digest used to name an artifact with these contents.

    MD5 keeps artifact names compatible with previously uploaded keys, e.g.
    `fastboot-dist-<md5>.zip`.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()
