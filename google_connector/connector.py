# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Google login flow.

``GoogleConnector`` drives the authorization code and refresh token flows,
validates the ID token and hosted domain, resolves directory groups and
assembles the resulting ``Identity``. No call is retried; every failure is
raised to the host.
"""

import time
from typing import Callable, List, Mapping, Optional

from pydantic import ValidationError

from connector_logging import Logger, create_logger

from .errors import (
    ConfigMismatch,
    DirectoryError,
    DomainNotAllowed,
    GroupResolutionFailed,
    IDTokenInvalid,
    MissingIDToken,
    NoAuthorizedGroup,
    ProviderDenied,
    TokenExchangeFailed,
)
from .groups import GroupResolver, filter_groups
from .models import IDTokenClaims, Identity, Scopes, Token
from .oidc import IDTokenVerifier, TokenExchanger


class GoogleConnector:
    """Authenticates users through Google and resolves their groups.

    The connector holds only read-only state after construction and can be
    shared by concurrent requests. Use ``create_connector`` to build one
    from configuration.

    Attributes:
        redirect_uri: Callback URL registered with the provider
        hosted_domains: Allowed hosted domains, empty for unrestricted
        groups: Allowed groups, empty for unrestricted
        fetch_transitive_group_membership: Expand nested groups
    """

    def __init__(
        self,
        redirect_uri: str,
        token_exchanger: TokenExchanger,
        verifier: IDTokenVerifier,
        group_resolver: Optional[GroupResolver] = None,
        hosted_domains: Optional[List[str]] = None,
        groups: Optional[List[str]] = None,
        fetch_transitive_group_membership: bool = False,
        logger: Optional[Logger] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.redirect_uri = redirect_uri
        self.hosted_domains = list(hosted_domains or [])
        self.groups = list(groups or [])
        self.fetch_transitive_group_membership = fetch_transitive_group_membership
        self._exchanger = token_exchanger
        self._verifier = verifier
        self._group_resolver = group_resolver
        self._logger = logger or create_logger(name="google_connector.connector")
        self._on_close = on_close
        self._closed = False

    def close(self) -> None:
        """Release provider resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "GoogleConnector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def login_url(self, scopes: Scopes, callback_url: str, state: str) -> str:
        """Build the provider authorization URL.

        Raises:
            ConfigMismatch: If ``callback_url`` is not the configured redirect URI
        """
        if callback_url != self.redirect_uri:
            raise ConfigMismatch(
                f"expected callback URL {callback_url!r} did not match the URL in the config {self.redirect_uri!r}"
            )

        params = {}
        if self.hosted_domains:
            # The hd hint takes one domain; the allow-list is enforced after callback
            preferred_domain = self.hosted_domains[0]
            if len(self.hosted_domains) > 1:
                preferred_domain = "*"
            params["hd"] = preferred_domain

        if scopes.offline_access:
            params["access_type"] = "offline"
            params["prompt"] = "consent"

        return self._exchanger.authorization_url(state, params)

    def handle_callback(self, scopes: Scopes, query: Mapping[str, str]) -> Identity:
        """Complete a login from the provider's redirect query parameters.

        Raises:
            ProviderDenied: If the provider returned an error
            TokenExchangeFailed: If the code exchange fails
        """
        error = query.get("error")
        if error:
            self._logger.warning(
                "Provider denied login", error=error, error_description=query.get("error_description", "")
            )
            raise ProviderDenied(error, query.get("error_description", ""))

        try:
            token = self._exchanger.exchange(query.get("code", ""))
        except TokenExchangeFailed:
            self._logger.exception("Authorization code exchange failed")
            raise
        return self._create_identity(scopes, token)

    def refresh(self, scopes: Scopes, identity: Identity) -> Identity:
        """Re-derive an identity from its stored refresh token.

        Raises:
            TokenExchangeFailed: If the refresh grant fails
        """
        expired = Token(
            refresh_token=identity.connector_data.decode("utf-8"),
            expires_at=time.time() - 3600,
        )
        try:
            token = self._exchanger.refresh(expired)
        except TokenExchangeFailed:
            self._logger.exception("Token refresh failed")
            raise
        return self._create_identity(scopes, token)

    def _create_identity(self, scopes: Scopes, token: Token) -> Identity:
        raw_id_token = token.extra("id_token")
        if not isinstance(raw_id_token, str) or not raw_id_token:
            raise MissingIDToken("no id_token in token response")

        try:
            id_token = self._verifier.verify(raw_id_token)
        except IDTokenInvalid:
            self._logger.exception("ID token verification failed")
            raise
        try:
            claims = IDTokenClaims.model_validate(id_token.claims)
        except ValidationError as e:
            self._logger.exception("ID token claims could not be decoded")
            raise IDTokenInvalid(f"failed to decode claims: {e}") from e
        username = claims.name
        email = claims.email
        hosted_domain = claims.hd

        if self.hosted_domains and hosted_domain not in self.hosted_domains:
            self._logger.warning("Login rejected by hosted domain", hosted_domain=hosted_domain)
            raise DomainNotAllowed(hosted_domain)

        groups: List[str] = []
        if scopes.groups and self._group_resolver is not None and len(self._group_resolver.routing_table) > 0:
            try:
                groups = self._group_resolver.resolve_groups(
                    email, self.fetch_transitive_group_membership, set()
                )
            except DirectoryError as e:
                raise GroupResolutionFailed(f"could not retrieve groups: {e}") from e

            if self.groups:
                groups = filter_groups(groups, self.groups)
                if not groups:
                    self._logger.warning("Login rejected by group filter", username=username)
                    raise NoAuthorizedGroup(username)

        self._logger.info("Login succeeded", email=email, groups=len(groups))
        return Identity(
            user_id=id_token.subject,
            username=username,
            email=email,
            email_verified=claims.email_verified,
            connector_data=token.refresh_token.encode("utf-8"),
            groups=tuple(groups),
        )
