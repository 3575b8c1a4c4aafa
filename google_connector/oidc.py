# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""OIDC provider peer: discovery, code exchange, refresh and ID token checks.

The login flow talks to the provider only through the ``TokenExchanger``
and ``IDTokenVerifier`` interfaces. ``OIDCProvider`` implements both over
HTTP for any OIDC-compliant issuer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import jwt

from connector_logging import Logger, create_logger

from .errors import DiscoveryFailed, IDTokenInvalid, TokenExchangeFailed
from .models import Token

# Google issues ID tokens with either form of its issuer
_ISSUER_ALIASES = {
    "https://accounts.google.com": ["https://accounts.google.com", "accounts.google.com"],
}

_SUPPORTED_ALGORITHMS = ["RS256"]


@dataclass(frozen=True)
class IDToken:
    """A verified ID token."""
    subject: str
    claims: Dict[str, Any] = field(default_factory=dict)


class TokenExchanger(ABC):
    """Obtains OAuth2 tokens from the provider's token endpoint."""

    @abstractmethod
    def authorization_url(self, state: str, params: Dict[str, str]) -> str:
        """Build the authorization URL for ``state`` with extra query params."""
        pass

    @abstractmethod
    def exchange(self, code: str) -> Token:
        """Exchange an authorization code for a token set.

        Raises:
            TokenExchangeFailed: If the token endpoint rejects or fails the request
        """
        pass

    @abstractmethod
    def refresh(self, token: Token) -> Token:
        """Return ``token`` if still valid, otherwise refresh it.

        Raises:
            TokenExchangeFailed: If the refresh grant fails
        """
        pass


class IDTokenVerifier(ABC):
    """Verifies raw ID tokens issued by the provider."""

    @abstractmethod
    def verify(self, raw_id_token: str) -> IDToken:
        """Verify signature, issuer, audience and expiry.

        Raises:
            IDTokenInvalid: If any check fails
        """
        pass


class OIDCProvider(TokenExchanger, IDTokenVerifier):
    """HTTP implementation of the OIDC provider peer.

    Attributes:
        issuer_url: Issuer base URL used for discovery
        client_id: OAuth client ID, also the expected ID token audience
        client_secret: OAuth client secret
        redirect_uri: Callback URL registered with the provider
        scopes: OAuth scopes to request
    """

    def __init__(
        self,
        issuer_url: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[Logger] = None,
        leeway: int = 60,
    ):
        self.issuer_url = issuer_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or ["openid", "profile", "email"]
        self.leeway = leeway
        self._http = http_client or httpx.Client(timeout=10.0)
        self._logger = logger or create_logger(name="google_connector.oidc")

        # Populated by discover()
        self._authorization_endpoint: Optional[str] = None
        self._token_endpoint: Optional[str] = None
        self._jwks_uri: Optional[str] = None
        self._issuer: Optional[str] = None
        self._jwks: Optional[jwt.PyJWKSet] = None

    def discover(self) -> None:
        """Load provider endpoints from the discovery document.

        Raises:
            DiscoveryFailed: If discovery fails or required endpoints are missing
        """
        url = f"{self.issuer_url}/.well-known/openid-configuration"
        try:
            response = self._http.get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DiscoveryFailed(f"failed to get provider: {e}") from e

        self._authorization_endpoint = data.get("authorization_endpoint")
        self._token_endpoint = data.get("token_endpoint")
        self._jwks_uri = data.get("jwks_uri")
        self._issuer = data.get("issuer") or self.issuer_url

        if not all([self._authorization_endpoint, self._token_endpoint, self._jwks_uri]):
            raise DiscoveryFailed(
                "OIDC discovery response missing required endpoints "
                "(authorization_endpoint, token_endpoint, jwks_uri)"
            )
        self._logger.debug("OIDC discovery complete", issuer=self._issuer)

    def _ensure_discovered(self) -> None:
        if not self._token_endpoint:
            self.discover()

    def authorization_url(self, state: str, params: Dict[str, str]) -> str:
        self._ensure_discovered()
        query = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
            **params,
        }
        return str(httpx.URL(self._authorization_endpoint, params=query))

    def _token_request(self, data: Dict[str, str]) -> Dict[str, Any]:
        self._ensure_discovered()
        try:
            response = self._http.post(
                self._token_endpoint,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    **data,
                },
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TokenExchangeFailed(
                f"failed to get token: {e.response.status_code} {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TokenExchangeFailed(f"failed to get token: {e}") from e

    def exchange(self, code: str) -> Token:
        payload = self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })
        return Token.from_response(payload)

    def refresh(self, token: Token) -> Token:
        if not token.expired:
            return token
        if not token.refresh_token:
            raise TokenExchangeFailed("failed to get token: no refresh token")

        payload = self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
        })
        refreshed = Token.from_response(payload)
        # Providers may omit the refresh token on refresh
        if not refreshed.refresh_token:
            refreshed.refresh_token = token.refresh_token
        return refreshed

    def _load_jwks(self) -> jwt.PyJWKSet:
        try:
            response = self._http.get(self._jwks_uri)
            response.raise_for_status()
            return jwt.PyJWKSet.from_dict(response.json())
        except (httpx.HTTPError, ValueError, jwt.PyJWTError) as e:
            raise IDTokenInvalid(f"failed to fetch JWKS: {e}") from e

    def _signing_key(self, raw_id_token: str) -> Any:
        try:
            kid = jwt.get_unverified_header(raw_id_token).get("kid")
        except jwt.InvalidTokenError as e:
            raise IDTokenInvalid(f"malformed ID token: {e}") from e

        if self._jwks is None:
            self._jwks = self._load_jwks()

        key = self._find_key(kid)
        if key is None:
            # Unknown kid: the provider may have rotated its keys
            self._jwks = self._load_jwks()
            key = self._find_key(kid)
        if key is None:
            raise IDTokenInvalid(f"no signing key found for kid {kid!r}")
        return key.key

    def _find_key(self, kid: Optional[str]) -> Optional[jwt.PyJWK]:
        for key in self._jwks.keys:
            if kid is None or key.key_id == kid:
                return key
        return None

    def verify(self, raw_id_token: str) -> IDToken:
        self._ensure_discovered()
        key = self._signing_key(raw_id_token)
        try:
            claims = jwt.decode(
                raw_id_token,
                key=key,
                algorithms=_SUPPORTED_ALGORITHMS,
                audience=self.client_id,
                leeway=self.leeway,
                options={"verify_iss": False, "require": ["iss", "sub", "aud", "exp"]},
            )
        except jwt.InvalidTokenError as e:
            raise IDTokenInvalid(f"failed to verify ID Token: {e}") from e

        accepted = _ISSUER_ALIASES.get(self._issuer, [self._issuer])
        if claims.get("iss") not in accepted:
            raise IDTokenInvalid(
                f"failed to verify ID Token: issuer {claims.get('iss')!r} does not match {self._issuer!r}"
            )

        return IDToken(subject=claims["sub"], claims=claims)

    def close(self) -> None:
        """Release the underlying HTTP client."""
        self._http.close()
