"""SHA-256 content hashing for change detection and media de-duplication"""

import hashlib
import json
from typing import Any


def sha256(content: str) -> str:
    """Return hex-encoded SHA-256 hash of content (64 chars)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_json(value: Any) -> str:
    """Hash a JSON-serialisable value independent of key order."""
    return sha256(json.dumps(value, sort_keys=True, ensure_ascii=False, default=str))
