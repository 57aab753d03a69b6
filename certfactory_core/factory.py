"""
certfactory_core.factory
------------------------
The TLS factory decides when a secret's certificate can be reused and, when
it can't, signs a new one under the configured CA.

Every method that changes a secret works on a copy; the caller's Secret is
never modified. Static (user-provided) secrets are never replaced.
"""

from __future__ import annotations
from datetime import timedelta
from typing import Callable, List, Optional, Sequence, Tuple
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from .annotations import (
    ANNOTATION_KEY_LIMIT, FINGERPRINT, check_key_limit, cns, collect_cns, is_static, needs_update, populate_cn,
)
from .crypto import (
    CERT_VALIDITY_DAYS, Signer, cert_fingerprint, marshal_chain, new_private_key,
    new_signed_cert, parse_certs_pem, parse_private_key_pem,
)
from .errors import CertVerificationError, StaticCertError
from .logger import get_logger
from .secret import SECRET_TYPE_TLS, TLS_CERT_KEY, TLS_PRIVATE_KEY_KEY, Secret, copy_or_new
from .utils import utcnow

log = get_logger("factory")

FilterFunc = Callable[..., List[str]]


class TLS:
    def __init__(
        self,
        ca_certs: Sequence[x509.Certificate],
        ca_key: Signer,
        cn: str = "",
        organization: Sequence[str] = (),
        filter_cn: Optional[FilterFunc] = None,
        expiration_days_check: int = 0,
        cert_validity_days: int = CERT_VALIDITY_DAYS,
        annotation_key_limit: int = ANNOTATION_KEY_LIMIT,
    ):
        if not ca_certs:
            raise ValueError("at least one CA certificate is required")
        self.ca_certs = list(ca_certs)
        self.ca_key = ca_key
        self.cn = cn
        self.organization = list(organization)
        self.filter_cn = filter_cn
        self.expiration_days_check = expiration_days_check
        self.cert_validity_days = cert_validity_days
        self.annotation_key_limit = check_key_limit(annotation_key_limit)

    def needs_update(self, max_sans: int, secret: Optional[Secret], *cn: str) -> bool:
        return needs_update(max_sans, secret, *cn, key_limit=self.annotation_key_limit)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def merge(self, target: Optional[Secret], additional: Optional[Secret]) -> Tuple[Secret, bool]:
        """
        Combine the SAN lists of two secrets.

        Returns the resulting secret and whether it differs from `target`.
        Secrets with expired certificates are never returned as-is.

        - If `additional` already covers every CN, it is returned; this lets a
          renewed or regenerated secret replace the current one.
        - Else if `target` covers every CN, it is returned unchanged.
        - Otherwise a new certificate for the union is signed, reusing the
          private key of `target`.
        """
        if is_static(target):
            return target, False

        merged = cns(target) + cns(additional)

        if not self.needs_update(0, additional, *merged) and not self.is_expired(additional):
            return additional, True

        if not self.needs_update(0, target, *merged) and not self.is_expired(target):
            return target, False

        return self.generate_cert(target, *merged)

    def renew(self, secret: Secret) -> Secret:
        """Re-sign the certificate to push out NotAfter, keeping key and CNs."""
        if is_static(secret):
            raise StaticCertError()
        names = cns(secret)
        secret = secret.deep_copy()
        secret.annotations = {}
        secret, _ = self.generate_cert(secret, *names)
        return secret

    def filter(self, *cn: str) -> List[str]:
        """Pass CNs through the configured filter callback, if any."""
        if not cn or self.filter_cn is None:
            return list(cn)
        return list(self.filter_cn(*cn))

    def add_cn(self, secret: Optional[Secret], *cn: str) -> Tuple[Optional[Secret], bool]:
        """
        Add CNs to a secret, returning the possibly new secret and whether it
        changed. Static secrets and secrets that already carry every CN are
        returned as-is.
        """
        approved = self.filter(*cn)

        if is_static(secret) or not self.needs_update(0, secret, *approved):
            return secret, False
        return self.generate_cert(secret, *approved)

    def regenerate(self, secret: Optional[Secret]) -> Secret:
        """Issue a certificate for the same CNs under a brand-new private key."""
        if is_static(secret):
            raise StaticCertError("cannot regenerate static certificate")
        names = cns(secret)
        secret, _ = self.generate_cert(None, *names)
        return secret

    # ------------------------------------------------------------------
    # Certificate generation
    # ------------------------------------------------------------------
    def generate_cert(self, secret: Optional[Secret], *cn: str) -> Tuple[Secret, bool]:
        secret = copy_or_new(secret)

        try:
            self.verify(secret)
        except (CertVerificationError, ValueError) as e:
            log.warning(f"unable to verify existing certificate: {e} - signing operation may change certificate issuer")

        secret = populate_cn(secret, *cn, key_limit=self.annotation_key_limit)

        private_key = self._private_key(secret)
        domains, ips = collect_cns(secret)

        leaf = new_signed_cert(
            private_key,
            self.ca_certs[0],
            self.ca_key,
            self.cn,
            self.organization,
            domains,
            ips,
            validity_days=self.cert_validity_days,
        )
        key_bytes, cert_bytes = marshal_chain(private_key, leaf, *self.ca_certs)

        secret.type = SECRET_TYPE_TLS
        secret.data[TLS_CERT_KEY] = cert_bytes
        secret.data[TLS_PRIVATE_KEY_KEY] = key_bytes
        secret.annotations[FINGERPRINT] = cert_fingerprint(leaf)

        log.info(f"[GEN] signed certificate for {len(domains)} domain(s), {len(ips)} IP(s) "
                 f"{secret.annotations[FINGERPRINT]}")
        return secret, True

    @staticmethod
    def _private_key(secret: Secret) -> Signer:
        key_bytes = secret.key_pem
        if not key_bytes:
            return new_private_key()
        try:
            return parse_private_key_pem(key_bytes)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            # unusable keys are replaced rather than failing the signing operation
            log.debug(f"existing private key unusable, generating a new one: {e}")
            return new_private_key()

    # ------------------------------------------------------------------
    # Expiration / integrity
    # ------------------------------------------------------------------
    def is_expired(self, secret: Optional[Secret]) -> bool:
        if secret is None or not secret.cert_pem:
            return False

        try:
            certificates = parse_certs_pem(secret.cert_pem)
        except ValueError:
            return False

        deadline = utcnow() + timedelta(days=self.expiration_days_check)
        return deadline > certificates[0].not_valid_after_utc

    def verify(self, secret: Optional[Secret]) -> None:
        """
        Check that the leaf certificate was issued by one of the configured CAs
        and is currently valid. A secret without a certificate passes.
        """
        if secret is None or not secret.cert_pem:
            return

        leaf = parse_certs_pem(secret.cert_pem)[0]

        now = utcnow()
        if now < leaf.not_valid_before_utc or now > leaf.not_valid_after_utc:
            raise CertVerificationError(
                f"certificate has expired or is not yet valid: valid from "
                f"{leaf.not_valid_before_utc.isoformat()} to {leaf.not_valid_after_utc.isoformat()}"
            )

        for ca in self.ca_certs:
            try:
                leaf.verify_directly_issued_by(ca)
                return
            except (ValueError, TypeError, InvalidSignature):
                continue

        raise CertVerificationError(f"certificate signed by unknown authority: {leaf.issuer.rfc4514_string()}")
