import pytest

from toofer.models import Account
from toofer.vault import crypto


@pytest.fixture
def fast_kdf(monkeypatch):
    """Lower the PBKDF2 work factor so store tests stay quick."""
    monkeypatch.setattr(crypto, "ITERATIONS", 1000)


@pytest.fixture
def accounts():
    return [
        Account.new(name="alice@example.com", issuer="GitHub", secret="JBSWY3DPEHPK3PXP"),
        Account.new(name="alice", issuer="Google", secret="gezd gnbv gy3t qojq"),
    ]
