# qbuilder/services/auth/oauth_service.py
"""
Authorization-code sign-in with Google, Microsoft and Apple.

The frontend asks for an authorization URL, sends the user to the provider,
then posts the returned ``code`` and ``state`` back. Google and Microsoft
identities come from their userinfo endpoints; Apple only returns a signed
``id_token``, which is verified against Apple's published keys.
"""
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from jose import jwt, JWTError

from qbuilder.core import config
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.services.auth.oauth_state import OAuthStateStore, oauth_state_store
from qbuilder.utils.logger import get_logger

logger = get_logger("auth.oauth")


@dataclass(frozen=True)
class OAuthIdentity:
    provider: str
    subject: str
    email: str
    email_verified: bool
    name: Optional[str] = None


class OAuthProviderError(Exception):
    pass


def _truthy(value) -> bool:
    # Apple sends "true"/"false" strings
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


# =====================================================
# PROVIDERS
# =====================================================
class OAuthProvider:
    name: str
    authorize_url: str
    token_url: str
    scope: str

    def __init__(self, client_id: Optional[str], client_secret: Optional[str]):
        self.client_id = client_id
        self.client_secret = client_secret

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def extra_authorize_params(self) -> dict:
        return {}

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
            **self.extra_authorize_params(),
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    def token_request_secret(self) -> str:
        return self.client_secret

    async def exchange_code(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> dict:
        response = await client.post(
            self.token_url,
            data={
                "client_id": self.client_id,
                "client_secret": self.token_request_secret(),
                "code": code,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        if response.status_code != 200:
            raise OAuthProviderError(f"token endpoint returned HTTP {response.status_code}")
        return response.json()

    async def fetch_identity(self, client: httpx.AsyncClient, tokens: dict) -> OAuthIdentity:
        raise NotImplementedError


class UserinfoProvider(OAuthProvider):
    userinfo_url: str

    async def fetch_identity(self, client: httpx.AsyncClient, tokens: dict) -> OAuthIdentity:
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthProviderError("no access_token in token response")

        response = await client.get(
            self.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != 200:
            raise OAuthProviderError(f"userinfo endpoint returned HTTP {response.status_code}")

        info = response.json()
        email = info.get("email") or info.get("preferred_username")
        if not info.get("sub") or not email:
            raise OAuthProviderError("userinfo response lacks sub or email")

        return OAuthIdentity(
            provider=self.name,
            subject=str(info["sub"]),
            email=email,
            email_verified=self.email_verified(info),
            name=info.get("name"),
        )

    def email_verified(self, info: dict) -> bool:
        return _truthy(info.get("email_verified", False))


class GoogleProvider(UserinfoProvider):
    name = "google"
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    userinfo_url = "https://openidconnect.googleapis.com/v1/userinfo"
    scope = "openid email profile"

    def extra_authorize_params(self) -> dict:
        return {"access_type": "online", "prompt": "select_account"}


class MicrosoftProvider(UserinfoProvider):
    name = "microsoft"
    userinfo_url = "https://graph.microsoft.com/oidc/userinfo"
    scope = "openid email profile User.Read"

    def __init__(self, client_id, client_secret, tenant: str = "common"):
        super().__init__(client_id, client_secret)
        base = f"https://login.microsoftonline.com/{tenant}/oauth2/v2.0"
        self.authorize_url = f"{base}/authorize"
        self.token_url = f"{base}/token"

    def extra_authorize_params(self) -> dict:
        return {"response_mode": "query", "prompt": "select_account"}

    def email_verified(self, info: dict) -> bool:
        # Microsoft accounts only expose addresses the tenant has verified
        return True


class AppleProvider(OAuthProvider):
    name = "apple"
    authorize_url = "https://appleid.apple.com/auth/authorize"
    token_url = "https://appleid.apple.com/auth/token"
    keys_url = "https://appleid.apple.com/auth/keys"
    issuer = "https://appleid.apple.com"
    scope = "name email"

    def __init__(self, client_id, team_id, key_id, private_key):
        super().__init__(client_id, None)
        self.team_id = team_id
        self.key_id = key_id
        self.private_key = private_key

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.team_id and self.key_id and self.private_key)

    def extra_authorize_params(self) -> dict:
        # Apple refuses the name/email scopes unless the response is posted
        return {"response_mode": "form_post"}

    def token_request_secret(self) -> str:
        now = int(time.time())
        return jwt.encode(
            {
                "iss": self.team_id,
                "iat": now,
                "exp": now + 300,
                "aud": self.issuer,
                "sub": self.client_id,
            },
            self.private_key,
            algorithm="ES256",
            headers={"kid": self.key_id},
        )

    async def fetch_identity(self, client: httpx.AsyncClient, tokens: dict) -> OAuthIdentity:
        id_token = tokens.get("id_token")
        if not id_token:
            raise OAuthProviderError("no id_token in token response")

        response = await client.get(self.keys_url)
        if response.status_code != 200:
            raise OAuthProviderError(f"Apple keys endpoint returned HTTP {response.status_code}")

        try:
            claims = jwt.decode(
                id_token,
                response.json(),
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=self.issuer,
                options={"verify_at_hash": False},
            )
        except JWTError as e:
            raise OAuthProviderError(f"invalid id_token: {e}")

        if not claims.get("sub") or not claims.get("email"):
            raise OAuthProviderError("id_token lacks sub or email")

        return OAuthIdentity(
            provider=self.name,
            subject=str(claims["sub"]),
            email=claims["email"],
            email_verified=_truthy(claims.get("email_verified", False)),
        )


# =====================================================
# SERVICE
# =====================================================
class OAuthService:
    def __init__(
        self,
        providers: dict[str, OAuthProvider],
        state_store: OAuthStateStore,
        timeout: float = config.OAUTH_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.providers = providers
        self.state_store = state_store
        self.timeout = timeout
        self.transport = transport

    def get_provider(self, name: str) -> OAuthProvider:
        provider = self.providers.get(name)
        if provider is None:
            raise AppException(
                404,
                f"Unknown OAuth provider '{name}'",
                ErrorCode.OAUTH_UNKNOWN_PROVIDER,
            )
        if not provider.configured:
            logger.warning("OAuth provider not configured", extra={"provider": name})
            raise AppException(
                503,
                f"Sign-in with {name} is not configured",
                ErrorCode.OAUTH_NOT_CONFIGURED,
            )
        return provider

    def get_authorization_url(self, name: str, redirect_uri: str) -> dict:
        provider = self.get_provider(name)
        state = self.state_store.issue(name, redirect_uri)
        return {
            "authorization_url": provider.authorization_url(state, redirect_uri),
            "state": state,
        }

    async def resolve_identity(
        self, name: str, code: str, state: str, redirect_uri: str
    ) -> OAuthIdentity:
        provider = self.get_provider(name)

        if not self.state_store.consume(state, name, redirect_uri):
            logger.warning("OAuth state rejected", extra={"provider": name})
            raise AppException(
                400,
                "Invalid or expired OAuth state",
                ErrorCode.OAUTH_STATE_INVALID,
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                tokens = await provider.exchange_code(client, code, redirect_uri)
                identity = await provider.fetch_identity(client, tokens)
        except (OAuthProviderError, httpx.HTTPError, ValueError) as e:
            logger.warning("OAuth provider exchange failed", extra={"provider": name, "error": str(e)})
            raise AppException(
                400,
                f"Sign-in with {name} failed",
                ErrorCode.OAUTH_PROVIDER_ERROR,
            )

        logger.info("OAuth identity resolved", extra={"provider": name})
        return identity


oauth_service = OAuthService(
    providers={
        "google": GoogleProvider(config.GOOGLE_CLIENT_ID, config.GOOGLE_CLIENT_SECRET),
        "microsoft": MicrosoftProvider(
            config.MICROSOFT_CLIENT_ID,
            config.MICROSOFT_CLIENT_SECRET,
            tenant=config.MICROSOFT_TENANT,
        ),
        "apple": AppleProvider(
            config.APPLE_CLIENT_ID,
            config.APPLE_TEAM_ID,
            config.APPLE_KEY_ID,
            config.APPLE_PRIVATE_KEY,
        ),
    },
    state_store=oauth_state_store,
)
