from __future__ import annotations


class CertFactoryError(Exception):
    pass


class StaticCertError(CertFactoryError):
    """Raised when an operation would modify a static (user-provided) certificate."""

    def __init__(self, message: str = "cannot renew static certificate"):
        super().__init__(message)


class CertVerificationError(CertFactoryError):
    pass
