"""Error taxonomy for secret resolution.

Every message carries secret *names* and environment variable *names* only.
Secret values never appear in an exception message, so any of these errors
is safe to print into shared CI logs.
"""


class ResolverError(Exception):
    """Base class for all resolution failures."""
    pass


class InvalidArguments(ResolverError):
    """Wrong argument count or malformed vault/environment identifier."""
    pass


class MissingCredential(ResolverError):
    """One of the identity credential fields is absent or empty."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"{field_name} environment variable is not set")


class AuthenticationFailed(ResolverError):
    """The secret store rejected the credential bundle."""
    pass


class SecretNotFound(ResolverError):
    """The store returned no entry for a secret name."""

    def __init__(self, secret_name: str, reason: str = ""):
        self.secret_name = secret_name
        self.reason = reason
        message = f"Failed to retrieve secret: {secret_name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class SecretEmpty(ResolverError):
    """The store returned an entry whose value is empty."""

    def __init__(self, secret_name: str):
        self.secret_name = secret_name
        super().__init__(f"Secret '{secret_name}' is empty")


class UnsafeValue(ResolverError):
    """A value cannot be represented in the requested output form."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Value for {name} {reason}")


class LogoutFailed(ResolverError):
    """Closing the authenticated session failed. Never fatal."""
    pass
