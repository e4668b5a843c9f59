"""Content fingerprints for image files.

The digest mimics the content hash a bundler puts into emitted asset names.
It is close enough for the runtime to build matching URLs but is not
guaranteed to be byte-for-byte identical to any bundler's own hash.
"""

import base64
import hashlib
from dataclasses import dataclass

# Length of the full digest prefix used for the short file hash
FILE_HASH_LENGTH = 10


@dataclass(frozen=True)
class Fingerprint:
    full_hash: str
    file_hash: str


def normalize_base64(value: str) -> str:
    """Make a base64 string safe for URLs and file names."""
    return value.replace("+", "-").replace("/", "_").rstrip("=")


def fingerprint(data: bytes) -> Fingerprint:
    """Compute the SHA-256 fingerprint of raw bytes."""
    full_hash = base64.b64encode(hashlib.sha256(data).digest()).decode("ascii")
    return Fingerprint(
        full_hash=full_hash,
        file_hash=normalize_base64(full_hash[:FILE_HASH_LENGTH]),
    )
