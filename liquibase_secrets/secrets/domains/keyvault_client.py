"""Azure Key Vault session wrapper."""
import logging
from typing import Optional

from azure.core.exceptions import (
    AzureError,
    ResourceNotFoundError,
)
from azure.identity import ClientSecretCredential
from azure.keyvault.secrets import SecretClient

from .errors import AuthenticationFailed, LogoutFailed, SecretNotFound
from .models import CredentialBundle

logger = logging.getLogger(__name__)

DEFAULT_DNS_SUFFIX = "vault.azure.net"


class KeyVaultSession:
    """
    Authenticated session against a single Key Vault.

    The session is inert until authenticate() succeeds. lookup() performs
    exactly one get_secret call per invocation and never caches. close()
    releases both the SecretClient and the credential.
    """

    def __init__(
        self,
        credentials: CredentialBundle,
        vault_name: str,
        dns_suffix: str = DEFAULT_DNS_SUFFIX,
        credential_factory=ClientSecretCredential,
        client_factory=SecretClient,
    ):
        self.credentials = credentials
        self.vault_name = vault_name
        self.dns_suffix = dns_suffix
        self._credential_factory = credential_factory
        self._client_factory = client_factory
        self._credential = None
        self._client: Optional[SecretClient] = None

    @property
    def vault_url(self) -> str:
        return f"https://{self.vault_name}.{self.dns_suffix}"

    @property
    def scope(self) -> str:
        return f"https://{self.dns_suffix}/.default"

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    def authenticate(self) -> None:
        """
        Exchange the credential bundle for a token, once.

        A token is requested eagerly so that a bad client secret or tenant
        surfaces here rather than on the first lookup.

        Raises:
            AuthenticationFailed: If the identity service rejects the bundle
        """
        logger.info(f"Authenticating to Azure tenant {self.credentials.tenant_id}...")
        try:
            self._credential = self._credential_factory(
                tenant_id=self.credentials.tenant_id,
                client_id=self.credentials.client_id,
                client_secret=self.credentials.client_secret,
            )
            self._credential.get_token(self.scope)
        except (AzureError, ValueError) as e:
            raise AuthenticationFailed(
                f"Failed to authenticate to Azure: {type(e).__name__}"
            ) from e

        self._client = self._client_factory(vault_url=self.vault_url, credential=self._credential)
        logger.info("Authenticated to Azure successfully")

    def lookup(self, secret_name: str) -> Optional[str]:
        """
        Look up one secret by name.

        Args:
            secret_name: Key Vault secret name

        Returns:
            The stored value, which may be empty or None

        Raises:
            SecretNotFound: If the vault has no such secret or the lookup fails
        """
        if self._client is None:
            raise SecretNotFound(secret_name, "session is not authenticated")

        try:
            secret = self._client.get_secret(secret_name)
        except ResourceNotFoundError as e:
            raise SecretNotFound(secret_name, "not found in vault") from e
        except AzureError as e:
            raise SecretNotFound(secret_name, type(e).__name__) from e
        return secret.value

    def close(self) -> None:
        """
        Release the client and credential.

        Raises:
            LogoutFailed: If either close call raises
        """
        client, credential = self._client, self._credential
        self._client = None
        self._credential = None

        errors = []
        for resource in (client, credential):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                errors.append(type(e).__name__)

        if errors:
            raise LogoutFailed(f"Failed to close Key Vault session: {', '.join(errors)}")
