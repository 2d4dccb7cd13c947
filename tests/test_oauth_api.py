import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jose import jwk, jwt

from qbuilder.services.auth.oauth_service import oauth_service

REDIRECT = "http://localhost:5173/auth/callback"


@pytest.fixture
def google(monkeypatch):
    provider = oauth_service.providers["google"]
    monkeypatch.setattr(provider, "client_id", "google-client")
    monkeypatch.setattr(provider, "client_secret", "google-secret")

    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.host == "oauth2.googleapis.com":
            return httpx.Response(200, json={"access_token": "google-access", "id_token": "unused"})
        if request.url.host == "openidconnect.googleapis.com":
            assert request.headers["Authorization"] == "Bearer google-access"
            return httpx.Response(
                200,
                json={
                    "sub": "google-123",
                    "email": "Noa@Builder.co.il",
                    "email_verified": True,
                    "name": "Noa Levi",
                },
            )
        return httpx.Response(404)

    monkeypatch.setattr(oauth_service, "transport", httpx.MockTransport(handler))
    return calls


async def _start(client, provider="google"):
    response = await client.get(f"/auth/oauth/{provider}/url", params={"redirect_uri": REDIRECT})
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_unknown_provider(client):
    response = await client.get("/auth/oauth/facebook/url", params={"redirect_uri": REDIRECT})
    assert response.status_code == 404
    assert response.json()["error_code"] == "OAUTH_UNKNOWN_PROVIDER"


async def test_unconfigured_provider(client, monkeypatch):
    provider = oauth_service.providers["microsoft"]
    monkeypatch.setattr(provider, "client_id", None)

    response = await client.get("/auth/oauth/microsoft/url", params={"redirect_uri": REDIRECT})
    assert response.status_code == 503
    assert response.json()["error_code"] == "OAUTH_NOT_CONFIGURED"


async def test_authorization_url(client, google):
    data = await _start(client)

    url = httpx.URL(data["authorization_url"])
    assert url.host == "accounts.google.com"
    assert url.params["state"] == data["state"]
    assert url.params["client_id"] == "google-client"
    assert url.params["redirect_uri"] == REDIRECT


async def test_google_sign_in_creates_user(client, google):
    data = await _start(client)

    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "auth-code", "state": data["state"], "redirect_uri": REDIRECT},
    )

    assert response.status_code == 200, response.text
    user = response.json()["data"]["user"]
    assert user["email"] == "noa@builder.co.il"
    assert user["provider"] == "google"
    assert user["email_verified"] is True
    assert len(google) == 2

    token_request = google[0]
    assert b"code=auth-code" in token_request.content
    assert b"grant_type=authorization_code" in token_request.content

    # an OAuth-only account has no password to log in with
    response = await client.post(
        "/auth/login", json={"email": "noa@builder.co.il", "password": "Secret123"}
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "OAUTH_REQUIRED"


async def test_google_sign_in_links_existing_account(client, google, register):
    await register(email="noa@builder.co.il")
    data = await _start(client)

    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "auth-code", "state": data["state"], "redirect_uri": REDIRECT},
    )
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["provider"] == "google"
    assert user["business_name"] == "Cohen Renovations"

    response = await client.post(
        "/auth/login", json={"email": "noa@builder.co.il", "password": "Secret123"}
    )
    assert response.status_code == 200


async def test_state_cannot_be_reused(client, google):
    data = await _start(client)
    body = {"code": "auth-code", "state": data["state"], "redirect_uri": REDIRECT}

    assert (await client.post("/auth/oauth/google/callback", json=body)).status_code == 200

    response = await client.post("/auth/oauth/google/callback", json=body)
    assert response.status_code == 400
    assert response.json()["error_code"] == "OAUTH_STATE_INVALID"


async def test_state_must_match_redirect(client, google):
    data = await _start(client)

    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "auth-code", "state": data["state"], "redirect_uri": "http://evil.test/cb"},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "OAUTH_STATE_INVALID"
    assert google == []


async def test_non_ascii_redirect_uri(client, google):
    hebrew = "https://app.example/כניסה"

    data = await _start(client)
    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "auth-code", "state": data["state"], "redirect_uri": hebrew},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "OAUTH_STATE_INVALID"

    response = await client.get("/auth/oauth/google/url", params={"redirect_uri": hebrew})
    state = response.json()["data"]["state"]
    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "auth-code", "state": state, "redirect_uri": hebrew},
    )
    assert response.status_code == 200, response.text


async def test_provider_failure(client, google, monkeypatch):
    monkeypatch.setattr(
        oauth_service,
        "transport",
        httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_grant"})),
    )
    data = await _start(client)

    response = await client.post(
        "/auth/oauth/google/callback",
        json={"code": "bad-code", "state": data["state"], "redirect_uri": REDIRECT},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "OAUTH_PROVIDER_ERROR"


async def test_apple_sign_in_verifies_id_token(client, monkeypatch):
    apple = oauth_service.providers["apple"]

    signing_key = ec.generate_private_key(ec.SECP256R1())
    monkeypatch.setattr(apple, "client_id", "com.builder.web")
    monkeypatch.setattr(apple, "team_id", "TEAM123")
    monkeypatch.setattr(apple, "key_id", "KEY123")
    monkeypatch.setattr(
        apple,
        "private_key",
        signing_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode(),
    )

    apple_rsa = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    apple_pem = apple_rsa.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_jwk = jwk.construct(apple_pem, "RS256").public_key().to_dict()
    public_jwk["kid"] = "apple-kid"

    now = int(time.time())
    id_token = jwt.encode(
        {
            "iss": "https://appleid.apple.com",
            "aud": "com.builder.web",
            "sub": "apple-001",
            "email": "avi@builder.co.il",
            "email_verified": "true",
            "iat": now,
            "exp": now + 600,
        },
        apple_pem,
        algorithm="RS256",
        headers={"kid": "apple-kid"},
    )

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/token":
            # client secret must be an ES256 JWT signed with our key
            secret = dict(httpx.QueryParams(request.content.decode()))["client_secret"]
            assert jwt.get_unverified_header(secret)["alg"] == "ES256"
            return httpx.Response(200, json={"id_token": id_token})
        if request.url.path == "/auth/keys":
            return httpx.Response(200, json={"keys": [public_jwk]})
        return httpx.Response(404)

    monkeypatch.setattr(oauth_service, "transport", httpx.MockTransport(handler))

    data = await _start(client, "apple")
    response = await client.post(
        "/auth/oauth/apple/callback",
        json={"code": "apple-code", "state": data["state"], "redirect_uri": REDIRECT},
    )

    assert response.status_code == 200, response.text
    user = response.json()["data"]["user"]
    assert user["email"] == "avi@builder.co.il"
    assert user["provider"] == "apple"
    assert user["email_verified"] is True
