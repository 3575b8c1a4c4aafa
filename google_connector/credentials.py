# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Service account credentials for the Directory API.

A service account with domain-wide delegation impersonates a Workspace
super admin to list group memberships. Access tokens are obtained with the
JWT bearer grant (RFC 7523) and cached until shortly before expiry.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import httpx
import jwt

from connector_logging import Logger, create_logger

from .directory import GoogleDirectoryClient
from .errors import CredentialsError

DIRECTORY_GROUP_READONLY_SCOPE = "https://www.googleapis.com/auth/admin.directory.group.readonly"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"

_ASSERTION_LIFETIME = 3600
_EXPIRY_SKEW = 60


def load_service_account_info(
    service_account_file_path: str = "",
    logger: Optional[Logger] = None,
) -> Dict[str, Any]:
    """Load service account JSON from a file or the ambient default.

    With no path, ``GOOGLE_APPLICATION_CREDENTIALS`` is used.

    Raises:
        CredentialsError: If no credentials are found or they are not a
            service account key
    """
    logger = logger or create_logger(name="google_connector.credentials")

    path = service_account_file_path
    if not path:
        logger.warning(
            "the application default credential is used since the service account file path is not used"
        )
        path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
        if not path:
            raise CredentialsError(
                "failed to fetch application default credentials: GOOGLE_APPLICATION_CREDENTIALS is not set"
            )

    try:
        info = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CredentialsError(f"error reading credentials from file: {e}") from e

    if info.get("type") != "service_account":
        raise CredentialsError(
            f"unable to parse credentials: expected a service_account key, got {info.get('type')!r}"
        )
    for key in ("client_email", "private_key"):
        if not info.get(key):
            raise CredentialsError(f"unable to parse credentials: missing {key}")
    return info


class ServiceAccountAuth(httpx.Auth):
    """httpx auth that attaches a delegated service account access token.

    Attributes:
        subject: Admin email to impersonate, or empty for the account itself
        scope: OAuth scope requested for the access token
    """

    def __init__(
        self,
        info: Dict[str, Any],
        subject: str = "",
        scope: str = DIRECTORY_GROUP_READONLY_SCOPE,
        http_client: Optional[httpx.Client] = None,
    ):
        self.subject = subject
        self.scope = scope
        self._client_email = info["client_email"]
        self._private_key = info["private_key"]
        self._private_key_id = info.get("private_key_id")
        self._token_uri = info.get("token_uri") or DEFAULT_TOKEN_URI
        self._http = http_client or httpx.Client(timeout=10.0)

        self._lock = threading.Lock()
        self._access_token: Optional[str] = None
        self._expires_at = 0.0

    def _assertion(self, now: int) -> str:
        claims = {
            "iss": self._client_email,
            "scope": self.scope,
            "aud": self._token_uri,
            "iat": now,
            "exp": now + _ASSERTION_LIFETIME,
        }
        if self.subject:
            claims["sub"] = self.subject
        headers = {"kid": self._private_key_id} if self._private_key_id else None
        try:
            return jwt.encode(claims, self._private_key, algorithm="RS256", headers=headers)
        except (ValueError, jwt.PyJWTError) as e:
            raise CredentialsError(f"unable to sign service account assertion: {e}") from e

    def _fetch_token(self) -> None:
        now = int(time.time())
        try:
            response = self._http.post(
                self._token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": self._assertion(now)},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise CredentialsError(
                f"service account token request failed: {e.response.status_code} {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CredentialsError(f"service account token request failed: {e}") from e

        if not payload.get("access_token"):
            raise CredentialsError("service account token response has no access_token")
        self._access_token = payload["access_token"]
        self._expires_at = now + int(payload.get("expires_in", _ASSERTION_LIFETIME))

    def access_token(self) -> str:
        """Return a cached access token, fetching a new one when near expiry."""
        with self._lock:
            if self._access_token is None or time.time() >= self._expires_at - _EXPIRY_SKEW:
                self._fetch_token()
            return self._access_token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.access_token()}"
        yield request


def create_directory_client(
    service_account_file_path: str,
    admin_email: str,
    http_client: Optional[httpx.Client] = None,
    logger: Optional[Logger] = None,
) -> GoogleDirectoryClient:
    """Create a Directory API client impersonating ``admin_email``.

    Raises:
        CredentialsError: If the credentials cannot be loaded
    """
    info = load_service_account_info(service_account_file_path, logger=logger)
    # Only impersonate when an admin is configured
    auth = ServiceAccountAuth(info, subject=admin_email, http_client=http_client)
    return GoogleDirectoryClient(auth=auth, http_client=http_client)
