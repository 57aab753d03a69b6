"""
certfactory-core
================
Lifecycle management for TLS certificates stored in Kubernetes-style secrets.

Provides:
- Secret record type and the per-CN annotation scheme
- Merge / AddCN / Renew / Regenerate decisions with minimal re-signing
- ECDSA key and X.509 certificate primitives (via `cryptography`)
"""

from .annotations import (
    CN_PREFIX, FINGERPRINT, MIN_ANNOTATION_KEY_LIMIT, STATIC, cns, collect_cns, get_annotation_key, is_static, needs_update,
)
from .config import TLSConfig, load_tls_config, tls_factory
from .errors import CertFactoryError, CertVerificationError, StaticCertError
from .factory import TLS
from .secret import SECRET_TYPE_TLS, TLS_CERT_KEY, TLS_PRIVATE_KEY_KEY, Secret

__all__ = [
    "CN_PREFIX",
    "FINGERPRINT",
    "MIN_ANNOTATION_KEY_LIMIT",
    "STATIC",
    "cns",
    "collect_cns",
    "get_annotation_key",
    "is_static",
    "needs_update",
    "TLSConfig",
    "load_tls_config",
    "tls_factory",
    "CertFactoryError",
    "CertVerificationError",
    "StaticCertError",
    "TLS",
    "SECRET_TYPE_TLS",
    "TLS_CERT_KEY",
    "TLS_PRIVATE_KEY_KEY",
    "Secret",
]
