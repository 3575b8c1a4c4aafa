# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Exceptions raised by the Google connector.

Three families are kept apart so a host can choose its messaging:

- ``AuthenticationError``: the provider refused or the protocol was violated.
- ``AuthorizationError``: the user authenticated but policy rejects the login.
- ``ProviderError``: an upstream service failed or is misconfigured.
"""


class ConnectorError(Exception):
    """Base class for all connector errors."""
    pass


class ConfigMismatch(ConnectorError):
    """Raised when a callback URL does not match the configured redirect URI."""
    pass


class AuthenticationError(ConnectorError):
    """Raised when authentication fails at the provider or protocol level."""
    pass


class ProviderDenied(AuthenticationError):
    """Raised when the provider redirects back with an OAuth2 error code."""

    def __init__(self, error: str, error_description: str = ""):
        self.error = error
        self.error_description = error_description
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.error_description:
            return self.error
        return f"{self.error}: {self.error_description}"


class MissingIDToken(AuthenticationError):
    """Raised when the token response carries no id_token."""
    pass


class IDTokenInvalid(AuthenticationError):
    """Raised when the id_token fails signature, issuer, audience or expiry checks."""
    pass


class AuthorizationError(ConnectorError):
    """Raised when a successfully authenticated user is rejected by policy."""
    pass


class DomainNotAllowed(AuthorizationError):
    """Raised when the hosted-domain claim is not in the allowed list."""

    def __init__(self, hosted_domain: str):
        self.hosted_domain = hosted_domain
        super().__init__(f"unexpected hd claim {hosted_domain!r}")


class NoAuthorizedGroup(AuthorizationError):
    """Raised when none of the user's groups is in the allowed list."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"user {username!r} is not in any of the required groups")


class ProviderError(ConnectorError):
    """Raised when an upstream service is unavailable or misbehaves."""
    pass


class DiscoveryFailed(ProviderError):
    """Raised when the OIDC discovery document cannot be loaded."""
    pass


class TokenExchangeFailed(ProviderError):
    """Raised when the token endpoint rejects or fails an exchange."""
    pass


class CredentialsError(ProviderError):
    """Raised when directory credentials cannot be loaded or minted."""
    pass


class DirectoryError(ProviderError):
    """Base class for directory lookup failures."""
    pass


class NoDirectoryRoute(DirectoryError):
    """Raised when no directory client is configured for a domain."""

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(
            f"unable to find super admin email, domainToAdminEmail for domain: "
            f"{domain} not set, * is also empty"
        )


class DirectoryQueryFailed(DirectoryError):
    """Raised when listing groups for a member fails."""

    def __init__(self, member: str, reason: str):
        self.member = member
        super().__init__(f"could not list groups for {member}: {reason}")


class GroupResolutionFailed(ProviderError):
    """Raised by the login flow when group resolution fails.

    The underlying DirectoryError is chained as ``__cause__``.
    """
    pass
