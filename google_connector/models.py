# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Identity and token models for the Google connector.

An ``Identity`` is built fresh on every successful callback or refresh.
The connector never persists it; the host owns storage.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictStr,
    ValidationInfo,
    field_validator,
)


@dataclass(frozen=True)
class Scopes:
    """What the host requested for a login.

    Attributes:
        offline_access: Request a refresh token and force consent
        groups: Resolve directory group memberships
    """
    offline_access: bool = False
    groups: bool = False


@dataclass(frozen=True)
class Identity:
    """Verified result of authentication.

    Attributes:
        user_id: Subject of the verified ID token
        username: Display name claim
        email: Email claim
        email_verified: Whether the provider verified the email
        connector_data: Opaque reauthentication data (the refresh token)
        groups: Group emails, in discovery order
    """
    user_id: str
    username: str
    email: str
    email_verified: bool = False
    connector_data: bytes = b""
    groups: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert identity to dictionary for serialization.

        The reauthentication data is not included.
        """
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "email_verified": self.email_verified,
            "groups": list(self.groups),
        }


@dataclass
class Token:
    """OAuth2 token set returned by the token endpoint.

    Attributes:
        access_token: Bearer access token (empty when unknown)
        token_type: Token type, usually "Bearer"
        refresh_token: Long-lived refresh token, if granted
        expires_at: Unix time the access token expires, None if unknown
        raw: Full token response, including fields like id_token
    """
    access_token: str = ""
    token_type: str = "Bearer"
    refresh_token: str = ""
    expires_at: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Dict[str, Any], now: Optional[float] = None) -> "Token":
        """Build a token from a token endpoint JSON response."""
        now = time.time() if now is None else now
        expires_in = payload.get("expires_in")
        expires_at = now + float(expires_in) if expires_in else None
        return cls(
            access_token=payload.get("access_token", ""),
            token_type=payload.get("token_type", "Bearer"),
            refresh_token=payload.get("refresh_token", ""),
            expires_at=expires_at,
            raw=dict(payload),
        )

    def extra(self, key: str) -> Any:
        """Return a raw response field, or None if absent."""
        return self.raw.get(key)

    @property
    def expired(self) -> bool:
        if not self.access_token:
            return True
        if self.expires_at is None:
            return False
        return self.expires_at <= time.time()


class IDTokenClaims(BaseModel):
    """Profile claims read from a verified ID token.

    Types are strict: ``"false"`` is not a boolean. A JSON null decodes to
    the field default.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: StrictStr = ""
    email: StrictStr = ""
    email_verified: StrictBool = False
    hd: StrictStr = ""

    @field_validator("name", "email", "email_verified", "hd", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value
