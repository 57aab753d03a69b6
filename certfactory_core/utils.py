"""
certfactory_core.utils
----------------------
Helpers shared by the secret record and the annotation codec: the base64 form
of secret data used in Kubernetes JSON, UTC time, and short name digests.
"""

from __future__ import annotations
import base64, hashlib
from datetime import datetime, timezone
from typing import Dict, Mapping


def encode_data(data: Mapping[str, bytes]) -> Dict[str, str]:
    return {k: base64.b64encode(v).decode("ascii") for k, v in data.items()}

def decode_data(data: Mapping[str, str] | None) -> Dict[str, bytes]:
    # validate=True rejects stray characters instead of silently dropping them
    return {k: base64.b64decode(v, validate=True) for k, v in (data or {}).items()}

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def name_digest(value: str, length: int) -> str:
    """First `length` hex digits of the SHA-256 of a UTF-8 string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]
