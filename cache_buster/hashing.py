from __future__ import annotations

import hashlib

FINGERPRINT_LENGTH = 64


def fingerprint(data: bytes) -> str:
    """Compute the stable SHA256 hex token embedded in busted file names.

    Any byte sequence (including empty) is valid input.
    """
    return hashlib.sha256(data).hexdigest()
