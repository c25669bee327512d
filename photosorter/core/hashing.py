"""Content digests used to detect files that are already sorted."""

import hashlib
import os

# Bytes read per block (1 MiB)
DEFAULT_BLOCK_SIZE = 1 << 20


def file_digest(path: str, block_size: int = DEFAULT_BLOCK_SIZE) -> str:
    """Compute the MD5 hex digest of a file, reading it in blocks.

    Args:
        path: File to hash.
        block_size: Bytes read per iteration.

    Returns:
        32-character lowercase hex digest.

    Raises:
        OSError: If the file cannot be read.
    """
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(block_size), b""):
            h.update(chunk)
    return h.hexdigest()


def files_identical(a: str, b: str) -> bool:
    """Check whether two files have the same content.

    Sizes are compared first so differing files are usually rejected
    without hashing either of them.
    """
    if os.path.getsize(a) != os.path.getsize(b):
        return False
    return file_digest(a) == file_digest(b)
