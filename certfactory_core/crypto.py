"""
certfactory_core.crypto
-----------------------
Key and certificate primitives used by the TLS factory:

- ECDSA P-256 key generation, PEM key parsing/marshalling
- PEM certificate chain parsing/marshalling
- Leaf certificate signing under a CA, self-signed CA generation
- SHA-1 certificate fingerprints for change detection

All heavy lifting is done by `cryptography`; this module only fixes the
formats and defaults the factory relies on.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple, Union
from datetime import timedelta
from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from .names import IPAddress
from .utils import utcnow

Signer = Union[ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey]
SIGNER_TYPES = (ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey)

CERT_VALIDITY_DAYS = 365
CA_VALIDITY_DAYS = 3650

# --------- Private keys ----------
def new_private_key() -> Signer:
    return ec.generate_private_key(ec.SECP256R1())

def parse_private_key_pem(data: bytes) -> Signer:
    key = serialization.load_pem_private_key(data, password=None)
    if not isinstance(key, SIGNER_TYPES):
        raise TypeError(f"private key of type {type(key).__name__} cannot sign")
    return key

def marshal_private_key_pem(key: Signer) -> bytes:
    # EC and RSA keep their traditional "EC/RSA PRIVATE KEY" blocks
    if isinstance(key, (ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey)):
        fmt = serialization.PrivateFormat.TraditionalOpenSSL
    else:
        fmt = serialization.PrivateFormat.PKCS8
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=fmt,
        encryption_algorithm=serialization.NoEncryption(),
    )

def _sign_hash(key: Signer) -> Optional[hashes.HashAlgorithm]:
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return None
    return hashes.SHA256()

# --------- Certificates ----------
def parse_certs_pem(data: bytes) -> List[x509.Certificate]:
    return x509.load_pem_x509_certificates(data)

def marshal_chain(key: Signer, *certs: Optional[x509.Certificate]) -> Tuple[bytes, bytes]:
    """Return (key PEM, chain PEM); certs are written in order, None entries skipped."""
    key_bytes = marshal_private_key_pem(key)
    chain = b"".join(c.public_bytes(serialization.Encoding.PEM) for c in certs if c is not None)
    return key_bytes, chain

def marshal(cert: x509.Certificate, key: Signer) -> Tuple[bytes, bytes]:
    return cert.public_bytes(serialization.Encoding.PEM), marshal_private_key_pem(key)

def cert_fingerprint(cert: x509.Certificate) -> str:
    return "SHA1=" + cert.fingerprint(hashes.SHA1()).hex().upper()

def _subject(cn: str, organization: Sequence[str]) -> x509.Name:
    attrs = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, o) for o in organization]
    if cn:
        attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, cn))
    return x509.Name(attrs)

def new_signed_cert(
    signer: Signer,
    ca_cert: x509.Certificate,
    ca_key: Signer,
    cn: str,
    organization: Sequence[str],
    domains: Sequence[str],
    ips: Sequence[IPAddress],
    validity_days: int = CERT_VALIDITY_DAYS,
) -> x509.Certificate:
    """
    Sign a serving certificate for `signer`'s public key with the CA key.

    The leaf starts being valid when the CA does and expires `validity_days`
    from now. Domains and IPs end up in the SubjectAlternativeName extension,
    which is left out entirely when both are empty.
    """
    builder = (
        x509.CertificateBuilder()
        .subject_name(_subject(cn, organization))
        .issuer_name(ca_cert.subject)
        .public_key(signer.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(ca_cert.not_valid_before_utc)
        .not_valid_after(utcnow() + timedelta(days=validity_days))
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(signer.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
    )

    sans: List[x509.GeneralName] = [x509.DNSName(d) for d in domains]
    sans += [x509.IPAddress(ip) for ip in ips]
    if sans:
        builder = builder.add_extension(x509.SubjectAlternativeName(sans), critical=False)

    return builder.sign(ca_key, _sign_hash(ca_key))

# --------- Certificate authority ----------
def generate_ca(
    cn: Optional[str] = None,
    organization: Sequence[str] = ("certfactory-org",),
    validity_days: int = CA_VALIDITY_DAYS,
) -> Tuple[x509.Certificate, Signer]:
    """Create a self-signed ECDSA CA suitable for signing factory certificates."""
    key = new_private_key()
    now = utcnow()
    if not cn:
        cn = f"certfactory-ca@{int(now.timestamp())}"
    subject = _subject(cn, organization)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=validity_days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .sign(key, _sign_hash(key))
    )
    return cert, key

def load_ca(cert_pem: bytes, key_pem: bytes) -> Tuple[List[x509.Certificate], Signer]:
    return parse_certs_pem(cert_pem), parse_private_key_pem(key_pem)
