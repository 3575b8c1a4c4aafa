# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared fixtures for google_connector tests."""

import json
import time

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from connector_logging import SilentLogger
from tests.fakes import CLIENT_ID, ISSUER, FakeProvider


@pytest.fixture
def silent_logger():
    return SilentLogger()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_key_pem(rsa_private_key):
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def jwks(rsa_private_key):
    jwk = json.loads(RSAAlgorithm.to_jwk(rsa_private_key.public_key()))
    jwk.update({"kid": "key-1", "use": "sig", "alg": "RS256"})
    return {"keys": [jwk]}


@pytest.fixture
def make_id_token(rsa_private_key_pem):
    def _make(kid: str = "key-1", **overrides) -> str:
        now = int(time.time())
        claims = {
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "sub": "110169484474386276334",
            "iat": now,
            "exp": now + 3600,
            "email": "alice@example.com",
            "email_verified": True,
            "name": "Alice",
            "hd": "example.com",
        }
        claims.update(overrides)
        return jwt.encode(claims, rsa_private_key_pem, algorithm="RS256", headers={"kid": kid})
    return _make
