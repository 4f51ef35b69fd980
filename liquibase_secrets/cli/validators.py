"""Input validation for CLI arguments."""
import re
from typing import Mapping

from ..secrets.domains.errors import InvalidArguments
from ..secrets.domains.models import CredentialBundle
from ..secrets.workflows.resolve_operations import require_credentials

# Key Vault names: 3-24 chars, start with a letter, alphanumerics and single hyphens
_VAULT_NAME_PATTERN = re.compile(r'^[a-zA-Z](?:[a-zA-Z0-9]|-(?=[a-zA-Z0-9])){2,23}$')
_ENVIRONMENT_PATTERN = re.compile(r'^[a-zA-Z0-9-]+$')


def validate_vault_name(name: str) -> None:
    """
    Validate a vault name against Azure Key Vault naming rules.

    Raises:
        InvalidArguments: If the name cannot address a Key Vault
    """
    if not name:
        raise InvalidArguments("Key Vault name cannot be empty")

    if not _VAULT_NAME_PATTERN.match(name):
        raise InvalidArguments(
            f"Invalid Key Vault name '{name}'\n"
            "Key Vault names are 3-24 characters, start with a letter, and contain only\n"
            "letters, numbers and single hyphens (no leading, trailing or doubled hyphens)."
        )


def validate_environment(environment: str) -> None:
    """
    Validate an environment identifier.

    It becomes part of secret names, which Key Vault restricts to [a-zA-Z0-9-].

    Raises:
        InvalidArguments: If the identifier contains other characters
    """
    if not environment:
        raise InvalidArguments("Environment cannot be empty")

    if not _ENVIRONMENT_PATTERN.match(environment):
        raise InvalidArguments(
            f"Invalid environment '{environment}'\n"
            "Allowed characters: letters, numbers, hyphens (-)"
        )


def load_credentials(environ: Mapping[str, str]) -> CredentialBundle:
    """
    Build the credential bundle from an environment mapping.

    This is the only place ambient environment variables are read.

    Raises:
        MissingCredential: Naming the first absent variable
    """
    credentials = CredentialBundle.from_environ(environ)
    require_credentials(credentials)
    return credentials
