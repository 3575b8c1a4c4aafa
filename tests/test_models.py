# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for identity and token models."""

import dataclasses
import time

import pytest
from pydantic import ValidationError

from google_connector import IDTokenClaims, Identity, Token


class TestIdentity:
    """Tests for Identity."""

    def test_to_dict_omits_connector_data(self):
        """Test serialization leaves out the refresh token."""
        identity = Identity(
            user_id="123",
            username="Alice",
            email="alice@example.com",
            email_verified=True,
            connector_data=b"secret-refresh",
            groups=("eng@example.com",),
        )

        assert identity.to_dict() == {
            "user_id": "123",
            "username": "Alice",
            "email": "alice@example.com",
            "email_verified": True,
            "groups": ["eng@example.com"],
        }

    def test_identity_is_immutable(self):
        """Test identities cannot be modified after creation."""
        identity = Identity(user_id="123", username="Alice", email="alice@example.com")

        with pytest.raises(dataclasses.FrozenInstanceError):
            identity.groups = ("x",)


class TestToken:
    """Tests for Token."""

    def test_from_response(self):
        """Test fields and extras are read from a token response."""
        token = Token.from_response(
            {"access_token": "a", "refresh_token": "r", "expires_in": 60, "id_token": "i"},
            now=1000.0,
        )

        assert token.access_token == "a"
        assert token.refresh_token == "r"
        assert token.expires_at == 1060.0
        assert token.extra("id_token") == "i"
        assert token.extra("missing") is None

    def test_expired(self):
        """Test expiry is derived from access token and expiry time."""
        assert Token().expired
        assert Token(access_token="a", expires_at=time.time() - 1).expired
        assert not Token(access_token="a", expires_at=time.time() + 60).expired
        assert not Token(access_token="a").expired


class TestIDTokenClaims:
    """Tests for IDTokenClaims."""

    def test_reads_profile_claims_and_ignores_others(self):
        """Test known claims are read and registered JWT claims are ignored."""
        claims = IDTokenClaims.model_validate({
            "sub": "123",
            "aud": "client",
            "name": "Alice",
            "email": "alice@example.com",
            "email_verified": True,
            "hd": "example.com",
        })

        assert claims.name == "Alice"
        assert claims.email == "alice@example.com"
        assert claims.email_verified is True
        assert claims.hd == "example.com"

    def test_absent_and_null_claims_use_defaults(self):
        """Test missing and null claims both decode to empty defaults."""
        claims = IDTokenClaims.model_validate({"email": None, "email_verified": None})

        assert claims == IDTokenClaims(name="", email="", email_verified=False, hd="")

    @pytest.mark.parametrize("value", ["false", "true", 0, 1])
    def test_email_verified_must_be_boolean(self, value):
        """Test non-boolean email_verified values are not coerced."""
        with pytest.raises(ValidationError):
            IDTokenClaims.model_validate({"email_verified": value})
