# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Directory service clients and per-tenant routing.

A ``DirectoryRoutingTable`` maps a Workspace domain to the client that may
query it. It is built once at connector construction and never mutated,
so concurrent resolutions can share it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

import httpx

from connector_logging import Logger, create_logger

from .config import WILDCARD_DOMAIN
from .errors import CredentialsError, DirectoryQueryFailed, NoDirectoryRoute

DIRECTORY_API_URL = "https://admin.googleapis.com/admin/directory/v1"


@dataclass(frozen=True)
class GroupPage:
    """One page of a "list groups for member" response.

    Attributes:
        groups: Group emails on this page
        next_page_token: Continuation token, empty on the last page
    """
    groups: List[str] = field(default_factory=list)
    next_page_token: str = ""


class DirectoryClient(ABC):
    """Lists the groups a user or group is directly a member of."""

    @abstractmethod
    def list_groups(self, member_key: str, page_token: str = "") -> GroupPage:
        """Fetch one page of groups for ``member_key``.

        Args:
            member_key: Email or alias of a user or a group
            page_token: Continuation token from the previous page

        Raises:
            DirectoryQueryFailed: If the directory service call fails
        """
        pass


class GoogleDirectoryClient(DirectoryClient):
    """Admin SDK Directory API client.

    Authentication is supplied by ``auth`` (see ``ServiceAccountAuth``),
    which impersonates one Workspace administrator.
    """

    def __init__(
        self,
        auth: Optional[httpx.Auth] = None,
        http_client: Optional[httpx.Client] = None,
        base_url: str = DIRECTORY_API_URL,
    ):
        self.base_url = base_url.rstrip("/")
        self._auth = auth
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=10.0)

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def list_groups(self, member_key: str, page_token: str = "") -> GroupPage:
        params = {"userKey": member_key}
        if page_token:
            params["pageToken"] = page_token

        try:
            response = self._http.get(f"{self.base_url}/groups", params=params, auth=self._auth)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise DirectoryQueryFailed(
                member_key, f"{e.response.status_code} {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError, CredentialsError) as e:
            raise DirectoryQueryFailed(member_key, str(e)) from e

        # TODO: make the group key (email, id or name) configurable
        groups = [group["email"] for group in data.get("groups", []) if group.get("email")]
        return GroupPage(groups=groups, next_page_token=data.get("nextPageToken", ""))


# Builds a client impersonating the given admin email
DirectoryClientFactory = Callable[[str], DirectoryClient]


class DirectoryRoutingTable:
    """Immutable mapping from tenant domain to directory client.

    The reserved ``*`` key is used for domains with no explicit entry.
    """

    def __init__(self, routes: Optional[Mapping[str, DirectoryClient]] = None, logger: Optional[Logger] = None):
        self._routes = MappingProxyType(dict(routes or {}))
        self._logger = logger or create_logger(name="google_connector.directory")

    @classmethod
    def from_admin_emails(
        cls,
        domain_to_admin_email: Mapping[str, str],
        factory: DirectoryClientFactory,
        logger: Optional[Logger] = None,
    ) -> "DirectoryRoutingTable":
        """Build one client per configured domain via ``factory``."""
        routes: Dict[str, DirectoryClient] = {}
        for domain, admin_email in domain_to_admin_email.items():
            routes[domain] = factory(admin_email)
        return cls(routes, logger=logger)

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, domain: object) -> bool:
        return domain in self._routes

    @property
    def domains(self) -> List[str]:
        return list(self._routes)

    def route_for(self, domain: str) -> Optional[DirectoryClient]:
        """Exact lookup, None if ``domain`` has no entry."""
        return self._routes.get(domain)

    def resolve(self, domain: str) -> DirectoryClient:
        """Return the client for ``domain``, falling back to the wildcard route.

        Raises:
            NoDirectoryRoute: If neither the domain nor ``*`` is configured
        """
        client = self.route_for(domain)
        if client is not None:
            return client

        client = self.route_for(WILDCARD_DOMAIN)
        if client is None:
            raise NoDirectoryRoute(domain)
        self._logger.debug("Using wildcard directory route", domain=domain)
        return client


def extract_domain(email: str) -> str:
    """Return the part after the last "@", or ``*`` if there is none."""
    at = email.rfind("@")
    if at >= 0:
        return email[at + 1:]
    return WILDCARD_DOMAIN
