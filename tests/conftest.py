import pytest
from certfactory_core.crypto import generate_ca
from certfactory_core.factory import TLS


@pytest.fixture(scope="session")
def ca():
    return generate_ca(cn="test-ca", organization=["test-org"])


@pytest.fixture
def tls(ca):
    ca_cert, ca_key = ca
    return TLS(
        ca_certs=[ca_cert],
        ca_key=ca_key,
        cn="listener",
        organization=["test-org"],
        expiration_days_check=30,
    )

