"""Shared fixtures: an in-memory Key Vault and an isolated home directory."""
from pathlib import Path

import pytest

from liquibase_secrets.secrets.domains import preferences
from liquibase_secrets.secrets.domains.errors import (
    AuthenticationFailed,
    LogoutFailed,
    SecretNotFound,
)
from liquibase_secrets.secrets.domains.models import CredentialBundle

ROUND_TRIP_SECRETS = {
    "dev-liquibase-db-url": "jdbc:x",
    "dev-liquibase-db-username": "u",
    "dev-liquibase-db-password": "p",
    "liquibase-license-key": "L",
    "changelog-file": "c.xml",
}

# Long, distinctive values so a leak into log text cannot match by accident
DISTINCTIVE_SECRETS = {
    "dev-liquibase-db-url": "jdbc:postgresql://db-7f3a.internal:5432/payroll",
    "dev-liquibase-db-username": "svc-migrator-5521",
    "dev-liquibase-db-password": "Sup3r$ecretPa55word!",
    "liquibase-license-key": "LIC-0f9e-8a7b-6c5d-4e3f",
    "changelog-file": "changelogs/root-changelog-9931.xml",
}


class FakeKeyVault:
    """In-memory secret store that records every session call."""

    def __init__(self, secrets, fail_auth=False, fail_close=False):
        self.secrets = dict(secrets)
        self.fail_auth = fail_auth
        self.fail_close = fail_close
        self.calls = []
        self.sessions = []

    def session_factory(self, credentials, vault_name, dns_suffix="vault.azure.net"):
        session = FakeSession(self, credentials, vault_name, dns_suffix)
        self.sessions.append(session)
        return session

    @property
    def lookups(self):
        return [call[1] for call in self.calls if call[0] == "lookup"]

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


class FakeSession:

    def __init__(self, vault, credentials, vault_name, dns_suffix):
        self.vault = vault
        self.credentials = credentials
        self.vault_name = vault_name
        self.dns_suffix = dns_suffix

    def authenticate(self):
        self.vault.calls.append(("authenticate", self.vault_name))
        if self.vault.fail_auth:
            raise AuthenticationFailed("Failed to authenticate to Azure: ClientAuthenticationError")

    def lookup(self, secret_name):
        self.vault.calls.append(("lookup", secret_name))
        if secret_name not in self.vault.secrets:
            raise SecretNotFound(secret_name, "not found in vault")
        return self.vault.secrets[secret_name]

    def close(self):
        self.vault.calls.append(("close", self.vault_name))
        if self.vault.fail_close:
            raise LogoutFailed("Failed to close Key Vault session: ServiceRequestError")


@pytest.fixture
def make_vault():
    """Factory for FakeKeyVault instances."""
    def _make(secrets=None, **kwargs):
        return FakeKeyVault(ROUND_TRIP_SECRETS if secrets is None else secrets, **kwargs)
    return _make


@pytest.fixture
def credentials():
    return CredentialBundle(
        client_id="00000000-1111-2222-3333-444444444444",
        client_secret="client-secret-value-xyz",
        tenant_id="99999999-8888-7777-6666-555555555555",
    )


@pytest.fixture
def azure_env(monkeypatch, credentials):
    """Set the three service principal variables in the process environment."""
    monkeypatch.setenv("AZURE_CLIENT_ID", credentials.client_id)
    monkeypatch.setenv("AZURE_CLIENT_SECRET", credentials.client_secret)
    monkeypatch.setenv("AZURE_TENANT_ID", credentials.tenant_id)
    return credentials


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Temporary home directory so no real config or preferences are touched."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "liquibase-secrets"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home


@pytest.fixture
def round_trip_secrets():
    return dict(ROUND_TRIP_SECRETS)


@pytest.fixture
def distinctive_secrets():
    return dict(DISTINCTIVE_SECRETS)
