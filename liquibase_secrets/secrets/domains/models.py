"""Domain models for secret resolution."""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

# Environment variables holding the service principal identity
CLIENT_ID_VAR = "AZURE_CLIENT_ID"
CLIENT_SECRET_VAR = "AZURE_CLIENT_SECRET"
TENANT_ID_VAR = "AZURE_TENANT_ID"


@dataclass(frozen=True)
class CredentialBundle:
    """Service principal identity used to open a Key Vault session."""
    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str

    def missing_fields(self) -> List[str]:
        """Return the environment variable names of empty fields, in check order."""
        fields = [
            (CLIENT_ID_VAR, self.client_id),
            (CLIENT_SECRET_VAR, self.client_secret),
            (TENANT_ID_VAR, self.tenant_id),
        ]
        return [name for name, value in fields if not value]

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "CredentialBundle":
        return cls(
            client_id=environ.get(CLIENT_ID_VAR, ""),
            client_secret=environ.get(CLIENT_SECRET_VAR, ""),
            tenant_id=environ.get(TENANT_ID_VAR, ""),
        )


@dataclass(frozen=True)
class SecretNaming:
    """How logical secret names are built inside a vault."""
    application: str = "liquibase"
    license_key: str = "liquibase-license-key"
    changelog_file: str = "changelog-file"

    def per_environment(self, environment: str, prop: str) -> str:
        return f"{environment}-{self.application}-{prop}"


@dataclass(frozen=True)
class SecretReference:
    """A secret name to look up, and whether the run can continue without it."""
    name: str
    required: bool = True


@dataclass(frozen=True)
class PropertyBinding:
    """Maps one secret to its properties-file key and its environment variable name."""
    file_key: str
    env_name: str
    secret: SecretReference


@dataclass
class ResolvedPropertySet:
    """Ordered result of one resolution run.

    Values are kept in binding order. An optional secret that was not found
    is stored as None and left out of both output forms.
    """
    vault_name: str
    environment: str
    bindings: List[PropertyBinding]
    values: Dict[str, Optional[str]] = field(default_factory=dict, repr=False)

    def file_pairs(self) -> List[Tuple[str, str]]:
        return [
            (binding.file_key, self.values[binding.secret.name])
            for binding in self.bindings
            if self.values.get(binding.secret.name) is not None
        ]

    def env_pairs(self) -> List[Tuple[str, str]]:
        return [
            (binding.env_name, self.values[binding.secret.name])
            for binding in self.bindings
            if self.values.get(binding.secret.name) is not None
        ]


def build_bindings(environment: str, naming: Optional[SecretNaming] = None) -> List[PropertyBinding]:
    """
    Build the fixed Liquibase property schema for an environment.

    Order is significant: it is the order of lines in every output form.

    Args:
        environment: Environment identifier (e.g. dev, staging, prod)
        naming: Secret naming rules (defaults to the built-in convention)

    Returns:
        List of five bindings, all required
    """
    naming = naming or SecretNaming()
    return [
        PropertyBinding(
            "liquibaseProLicenseKey", "LIQUIBASE_LICENSE_KEY",
            SecretReference(naming.license_key),
        ),
        PropertyBinding(
            "url", "LIQUIBASE_COMMAND_URL",
            SecretReference(naming.per_environment(environment, "db-url")),
        ),
        PropertyBinding(
            "username", "LIQUIBASE_COMMAND_USERNAME",
            SecretReference(naming.per_environment(environment, "db-username")),
        ),
        PropertyBinding(
            "password", "LIQUIBASE_COMMAND_PASSWORD",
            SecretReference(naming.per_environment(environment, "db-password")),
        ),
        PropertyBinding(
            "changeLogFile", "LIQUIBASE_COMMAND_CHANGELOG_FILE",
            SecretReference(naming.changelog_file),
        ),
    ]
