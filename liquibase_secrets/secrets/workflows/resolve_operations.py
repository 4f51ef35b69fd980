"""Workflow for resolving the Liquibase property set from Key Vault."""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

from ..domains.config_loader import ResolverSettings
from ..domains.errors import (
    LogoutFailed,
    MissingCredential,
    SecretEmpty,
    SecretNotFound,
)
from ..domains.keyvault_client import KeyVaultSession
from ..domains.models import (
    CredentialBundle,
    PropertyBinding,
    ResolvedPropertySet,
    SecretReference,
    build_bindings,
)

logger = logging.getLogger(__name__)


class SecretSession(Protocol):
    """What the workflow needs from a secret-store session."""

    def authenticate(self) -> None: ...

    def lookup(self, secret_name: str) -> Optional[str]: ...

    def close(self) -> None: ...


def require_credentials(credentials: CredentialBundle) -> None:
    """Raise MissingCredential for the first empty field."""
    missing = credentials.missing_fields()
    if missing:
        raise MissingCredential(missing[0])


def terminate_session(session: SecretSession) -> None:
    """Close the session. Failures are logged and suppressed."""
    logger.info("Logging out from Azure...")
    try:
        session.close()
    except LogoutFailed as e:
        logger.warning(f"Warning: {e}")


@contextmanager
def authenticated_session(session: SecretSession) -> Iterator[SecretSession]:
    """
    Authenticate a session and guarantee it is closed on every exit path.

    Close is attempted even when authentication itself fails, so a partially
    established login is never left behind.
    """
    try:
        session.authenticate()
        yield session
    finally:
        terminate_session(session)


def fetch_secret(session: SecretSession, secret: SecretReference) -> Optional[str]:
    """
    Fetch one secret with a single lookup.

    Returns:
        The value, or None for an optional secret that is missing or empty

    Raises:
        SecretNotFound: Required secret does not exist
        SecretEmpty: Required secret exists but has an empty value
    """
    try:
        value = session.lookup(secret.name)
    except SecretNotFound as e:
        if secret.required:
            raise
        logger.info(f"Optional secret '{secret.name}' not available: {e.reason or 'not found'}")
        return None

    if not value:
        if secret.required:
            raise SecretEmpty(secret.name)
        logger.info(f"Optional secret '{secret.name}' is empty, skipping")
        return None

    logger.info(f"Fetched secret '{secret.name}'")
    return value


def resolve_secrets(
    credentials: CredentialBundle,
    vault_name: str,
    environment: str,
    settings: Optional[ResolverSettings] = None,
    session_factory=KeyVaultSession,
    bindings: Optional[List[PropertyBinding]] = None,
) -> ResolvedPropertySet:
    """
    Resolve every bound secret from one vault.

    Args:
        credentials: Service principal identity
        vault_name: Key Vault name
        environment: Environment identifier used to namespace secret names
        settings: Naming and DNS settings (defaults if not provided)
        session_factory: Callable building a session, given the credentials,
            vault name and DNS suffix
        bindings: Property schema (defaults to the five Liquibase properties)

    Returns:
        ResolvedPropertySet with a value for every required binding

    Raises:
        MissingCredential: Before any session is created
        AuthenticationFailed, SecretNotFound, SecretEmpty: On the first failure
    """
    require_credentials(credentials)

    settings = settings or ResolverSettings()
    if bindings is None:
        bindings = build_bindings(environment, settings.naming)

    logger.info(f"Key Vault: {vault_name}")
    logger.info(f"Environment: {environment}")

    session = session_factory(credentials, vault_name, dns_suffix=settings.dns_suffix)
    resolved = ResolvedPropertySet(vault_name=vault_name, environment=environment, bindings=bindings)

    with authenticated_session(session):
        logger.info("Fetching required secrets...")
        for binding in bindings:
            resolved.values[binding.secret.name] = fetch_secret(session, binding.secret)

    logger.info(f"Resolved {len(resolved.env_pairs())} secret(s) from Key Vault")
    return resolved
