"""
certfactory_core.annotations
----------------------------
Records which names a certificate covers as secret annotations, so coverage
can be checked without parsing the certificate.

Each covered name is stored as  <annotation key> -> <name>. The key is derived
from the name and may be truncated/hashed to fit the key length limit of the
backing store; the exact name is always recovered from the value.
"""

from __future__ import annotations
from typing import List, Optional, Tuple
from .logger import get_logger
from .names import IPAddress, is_valid_cn, split_cns
from .secret import Secret, copy_or_new
from .utils import name_digest

log = get_logger("annotations")

CN_PREFIX = "listener.cattle.io/cn-"
STATIC = "listener.cattle.io/static"
FINGERPRINT = "listener.cattle.io/fingerprint"

ANNOTATION_KEY_LIMIT = 63
DIGEST_SUFFIX_LEN = 6

# prefix, "-" and the digest suffix must survive truncation
MIN_ANNOTATION_KEY_LIMIT = len(CN_PREFIX) + 1 + DIGEST_SUFFIX_LEN


def check_key_limit(limit: int) -> int:
    if limit < MIN_ANNOTATION_KEY_LIMIT:
        raise ValueError(
            f"annotation key limit must be at least {MIN_ANNOTATION_KEY_LIMIT}, got {limit}"
        )
    return limit


def get_annotation_key(cn: str, limit: int = ANNOTATION_KEY_LIMIT) -> str:
    """
    Return the annotation key for a CN.

    IPv4 addresses and short hostnames are stored as-is. Longer hostnames and
    IPv6 addresses get ':' replaced, are truncated, and receive a short
    SHA-256 suffix of the original value to keep similar names apart.
    """
    check_key_limit(limit)
    key = CN_PREFIX + cn
    if len(key) <= limit and ":" not in key:
        return key
    digest = name_digest(key, DIGEST_SUFFIX_LEN)
    key = key.replace(":", "_")
    keep = limit - 1 - DIGEST_SUFFIX_LEN
    return key[:keep] + "-" + digest


def cns(secret: Optional[Secret]) -> List[str]:
    if secret is None:
        return []
    return [v for k, v in secret.annotations.items() if k.startswith(CN_PREFIX)]


def collect_cns(secret: Optional[Secret]) -> Tuple[List[str], List[IPAddress]]:
    return split_cns(cns(secret))


def populate_cn(secret: Optional[Secret], *cn: str, key_limit: int = ANNOTATION_KEY_LIMIT) -> Secret:
    secret = copy_or_new(secret)
    for name in cn:
        if is_valid_cn(name):
            secret.annotations[get_annotation_key(name, key_limit)] = name
        else:
            log.error(f"dropping invalid CN: {name}")
    return secret


def is_static(secret: Optional[Secret]) -> bool:
    """True if the secret holds a static (user-provided) certificate that must not be modified."""
    if secret is None:
        return False
    return secret.annotations.get(STATIC) == "true"


def needs_update(max_sans: int, secret: Optional[Secret], *cn: str,
                 key_limit: int = ANNOTATION_KEY_LIMIT) -> bool:
    """
    True if any CN is not yet recorded on the secret.

    Returns False once every CN is present, or when max_sans is non-zero and
    the secret already carries at least that many names.
    """
    if secret is None:
        return True

    for name in cn:
        if not secret.annotations.get(get_annotation_key(name, key_limit)):
            if max_sans > 0 and len(cns(secret)) >= max_sans:
                return False
            return True

    return False
