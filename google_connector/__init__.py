# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Google OpenID Connect connector.

Authenticates users against Google, enforces hosted-domain and group
allow-lists, and resolves direct and nested group memberships from the
Workspace Directory API with one impersonated administrator per domain.
"""

__version__ = "0.1.0"

from .config import ConnectorConfig, load_config, load_config_from_env
from .connector import GoogleConnector
from .credentials import ServiceAccountAuth, create_directory_client
from .directory import (
    DirectoryClient,
    DirectoryRoutingTable,
    GoogleDirectoryClient,
    GroupPage,
)
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigMismatch,
    ConnectorError,
    CredentialsError,
    DirectoryError,
    DirectoryQueryFailed,
    DiscoveryFailed,
    DomainNotAllowed,
    GroupResolutionFailed,
    IDTokenInvalid,
    MissingIDToken,
    NoAuthorizedGroup,
    NoDirectoryRoute,
    ProviderDenied,
    ProviderError,
    TokenExchangeFailed,
)
from .factory import create_connector
from .groups import GroupResolver, filter_groups
from .models import IDTokenClaims, Identity, Scopes, Token
from .oidc import IDToken, IDTokenVerifier, OIDCProvider, TokenExchanger

__all__ = [
    # Version
    "__version__",
    # Configuration
    "ConnectorConfig",
    "load_config",
    "load_config_from_env",
    # Models
    "Identity",
    "Scopes",
    "Token",
    "IDToken",
    "IDTokenClaims",
    # Connector
    "GoogleConnector",
    "create_connector",
    # Provider peer
    "TokenExchanger",
    "IDTokenVerifier",
    "OIDCProvider",
    # Directory
    "DirectoryClient",
    "GoogleDirectoryClient",
    "DirectoryRoutingTable",
    "GroupPage",
    "GroupResolver",
    "filter_groups",
    "ServiceAccountAuth",
    "create_directory_client",
    # Exceptions
    "ConnectorError",
    "ConfigMismatch",
    "AuthenticationError",
    "ProviderDenied",
    "MissingIDToken",
    "IDTokenInvalid",
    "AuthorizationError",
    "DomainNotAllowed",
    "NoAuthorizedGroup",
    "ProviderError",
    "DiscoveryFailed",
    "TokenExchangeFailed",
    "CredentialsError",
    "DirectoryError",
    "NoDirectoryRoute",
    "DirectoryQueryFailed",
    "GroupResolutionFailed",
]
