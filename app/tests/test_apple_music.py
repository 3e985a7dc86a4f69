"""Tests for Apple Music developer token minting"""

import dataclasses

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from roaster.apple_music import mint_developer_token
from roaster.errors import MissingConfigurationError
from roaster.main import create_app


@pytest.fixture
def apple_key():
    key = ec.generate_private_key(ec.SECP256R1())
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return key, pem


@pytest.fixture
def apple_settings(settings, apple_key):
    _, pem = apple_key
    return dataclasses.replace(settings, apple_team_id="TEAM123", apple_key_id="KEY123", apple_private_key=pem)


def test_token_is_es256_signed_with_claims(apple_settings, apple_key):
    """Test the developer token header and claims"""
    key, _ = apple_key
    token = mint_developer_token(apple_settings, ttl_seconds=3600, now=1_700_000_000)

    header = jwt.get_unverified_header(token)
    claims = jwt.decode(token, key.public_key(), algorithms=["ES256"], options={"verify_exp": False})

    assert header["alg"] == "ES256"
    assert header["kid"] == "KEY123"
    assert claims == {"iss": "TEAM123", "iat": 1_700_000_000, "exp": 1_700_003_600}


def test_missing_credentials(settings):
    with pytest.raises(MissingConfigurationError):
        mint_developer_token(settings)


def test_token_endpoint(apple_settings, apple_key, generator):
    key, _ = apple_key
    client = TestClient(create_app(settings=apple_settings, generator=generator))

    response = client.get("/api/apple/token")

    assert response.status_code == 200
    token = response.json()["developerToken"]
    assert jwt.decode(token, key.public_key(), algorithms=["ES256"])["iss"] == "TEAM123"
