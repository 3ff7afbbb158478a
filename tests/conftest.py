"""
Shared pytest fixtures for the PassVault test suite.

  - vault_path  -> record file inside a per-test temp directory
  - kdf_params  -> minimal Argon2id costs so key derivation stays fast
  - clock       -> manually advanced time source for auto-lock and ageing
  - store       -> unlocked VaultStore wired to all of the above
"""

import pytest

from vault.store import VaultStore

PASSPHRASE = "correct horse battery"

# Smallest costs Argon2id accepts for a single lane
FAST_KDF_PARAMS = {'time_cost': 1, 'memory_cost': 8, 'parallelism': 1}

START_TIME = 1_700_000_000


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, now=START_TIME):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def vault_path(tmp_path):
    return str(tmp_path / "test_vault.dat")


@pytest.fixture
def kdf_params():
    return dict(FAST_KDF_PARAMS)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_store(vault_path, kdf_params, clock):
    """Factory for stores sharing the test's vault file and clock."""

    def _make(auto_lock_minutes=10):
        return VaultStore(
            vault_path=vault_path,
            auto_lock_minutes=auto_lock_minutes,
            kdf_params=kdf_params,
            clock=clock,
        )

    return _make


@pytest.fixture
def store(make_store):
    """A freshly created, unlocked vault."""
    vault = make_store()
    assert vault.initialize(PASSPHRASE)
    return vault


def make_draft(website="github.com", username="dev@mycompany.io",
               password="Tr0ub4dor&9!XyZ", category="Work", notes=""):
    return {
        'website': website,
        'username': username,
        'password': password,
        'category': category,
        'notes': notes,
    }
