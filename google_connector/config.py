# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Connector configuration.

Configuration is loaded once, validated with pydantic and frozen. Keys
accept both snake_case names and the camelCase names used by existing
connector configuration files (``clientID``, ``domainToAdminEmail``, ...).
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ISSUER_URL = "https://accounts.google.com"
WILDCARD_DOMAIN = "*"
DEFAULT_SCOPES = ["profile", "email"]


class ConnectorConfig(BaseModel):
    """Configuration options for Google logins."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    client_id: str = Field(..., min_length=1, alias="clientID")
    client_secret: str = Field(..., min_length=1, alias="clientSecret")
    redirect_uri: str = Field(..., min_length=1, alias="redirectURI")
    issuer_url: str = Field(default=ISSUER_URL, alias="issuerURL")

    # Defaults to "profile" and "email"
    scopes: List[str] = Field(default_factory=list)

    # If nonempty, only users from a listed domain may log in
    hosted_domains: List[str] = Field(default_factory=list, alias="hostedDomains")

    # If nonempty, only users in a listed group may log in
    groups: List[str] = Field(default_factory=list)

    # Empty means application default credentials
    service_account_file_path: str = Field(default="", alias="serviceAccountFilePath")

    # Deprecated: folded into domain_to_admin_email under "*"
    admin_email: str = Field(default="", alias="adminEmail")

    # Workspace domain -> super admin impersonated when listing groups
    domain_to_admin_email: Dict[str, str] = Field(default_factory=dict, alias="domainToAdminEmail")

    fetch_transitive_group_membership: bool = Field(
        default=False, alias="fetchTransitiveGroupMembership"
    )

    @model_validator(mode="before")
    @classmethod
    def migrate_admin_email(cls, data: Any) -> Any:
        """Fold the deprecated single admin email into the wildcard route."""
        if not isinstance(data, dict):
            return data
        admin_email = data.get("adminEmail") or data.get("admin_email")
        if not admin_email:
            return data
        key = "domainToAdminEmail" if "domainToAdminEmail" in data else "domain_to_admin_email"
        mapping = dict(data.get(key) or {})
        mapping[WILDCARD_DOMAIN] = admin_email
        return {**data, key: mapping}

    @property
    def effective_scopes(self) -> List[str]:
        """OAuth scopes to request: openid plus configured or default scopes."""
        return ["openid"] + (list(self.scopes) or list(DEFAULT_SCOPES))


def load_config(path: str | Path) -> ConnectorConfig:
    """Load configuration from a JSON file.

    Raises:
        ValueError: If the file is not valid JSON or fails validation
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid connector configuration file {path}: {e}") from e
    return ConnectorConfig.model_validate(data)


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    value_lower = value.lower()
    if value_lower in ("true", "1", "yes", "on"):
        return True
    if value_lower in ("false", "0", "no", "off"):
        return False
    return default


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> ConnectorConfig:
    """Load configuration from GOOGLE_* environment variables.

    ``GOOGLE_DOMAIN_TO_ADMIN_EMAIL`` is a comma separated list of
    ``domain=email`` pairs; ``*`` may be used as the domain.

    Raises:
        ValueError: If a mapping entry is malformed or validation fails
    """
    env = environ if environ is not None else os.environ

    domain_map: Dict[str, str] = {}
    for entry in _split(env.get("GOOGLE_DOMAIN_TO_ADMIN_EMAIL")):
        domain, sep, email = entry.partition("=")
        if not sep or not domain.strip() or not email.strip():
            raise ValueError(
                f"Invalid GOOGLE_DOMAIN_TO_ADMIN_EMAIL entry {entry!r}, expected domain=email"
            )
        domain_map[domain.strip()] = email.strip()

    return ConnectorConfig.model_validate({
        "clientID": env.get("GOOGLE_CLIENT_ID", ""),
        "clientSecret": env.get("GOOGLE_CLIENT_SECRET", ""),
        "redirectURI": env.get("GOOGLE_REDIRECT_URI", ""),
        "issuerURL": env.get("GOOGLE_ISSUER_URL") or ISSUER_URL,
        "scopes": _split(env.get("GOOGLE_SCOPES")),
        "hostedDomains": _split(env.get("GOOGLE_HOSTED_DOMAINS")),
        "groups": _split(env.get("GOOGLE_GROUPS")),
        "serviceAccountFilePath": env.get("GOOGLE_SERVICE_ACCOUNT_FILE", ""),
        "adminEmail": env.get("GOOGLE_ADMIN_EMAIL", ""),
        "domainToAdminEmail": domain_map,
        "fetchTransitiveGroupMembership": _get_bool(
            env.get("GOOGLE_FETCH_TRANSITIVE_GROUP_MEMBERSHIP")
        ),
    })
