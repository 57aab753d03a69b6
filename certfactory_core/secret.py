# certfactory_core/secret.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from .utils import decode_data, encode_data

TLS_CERT_KEY = "tls.crt"
TLS_PRIVATE_KEY_KEY = "tls.key"

SECRET_TYPE_OPAQUE = "Opaque"
SECRET_TYPE_TLS = "kubernetes.io/tls"


@dataclass
class Secret:
    """
    Certificate-bearing key/value record.

    Mirrors the parts of a Kubernetes Secret the factory reads and writes:
    - annotations: metadata, including the per-CN coverage entries
    - data: raw bytes keyed by TLS_CERT_KEY / TLS_PRIVATE_KEY_KEY
    - type: SECRET_TYPE_TLS once a certificate has been generated
    """
    name: str = ""
    namespace: str = ""
    annotations: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, bytes] = field(default_factory=dict)
    type: str = SECRET_TYPE_OPAQUE

    def deep_copy(self) -> "Secret":
        # str and bytes are immutable, copying the dicts is enough
        return Secret(
            name=self.name,
            namespace=self.namespace,
            annotations=dict(self.annotations),
            data=dict(self.data),
            type=self.type,
        )

    @property
    def cert_pem(self) -> bytes:
        return self.data.get(TLS_CERT_KEY, b"")

    @property
    def key_pem(self) -> bytes:
        return self.data.get(TLS_PRIVATE_KEY_KEY, b"")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "annotations": dict(self.annotations),
            },
            "data": encode_data(self.data),
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Secret":
        """Rebuild a Secret from its Kubernetes JSON shape (inverse of to_dict)."""
        meta = data.get("metadata") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", ""),
            annotations=dict(meta.get("annotations") or {}),
            data=decode_data(data.get("data")),
            type=data.get("type", SECRET_TYPE_OPAQUE),
        )


def copy_or_new(secret: Optional[Secret]) -> Secret:
    if secret is None:
        return Secret()
    return secret.deep_copy()
