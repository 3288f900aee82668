"""
Identity backend client.

Thin wrapper over the external auth server (GoTrue-compatible API under
``<backend_url>/auth/v1``). Handles:
- OAuth sign-in URL construction with a PKCE challenge
- Authorization code exchange for a session
- Sign-out

A client is created per request and closed when the request ends.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.core.config import Settings, get_settings


class IdentityError(Exception):
    """The identity backend rejected a request or could not be reached."""


@dataclass(frozen=True)
class OAuthRedirect:
    url: str
    code_verifier: str


@dataclass(frozen=True)
class IdentitySession:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    user_id: uuid.UUID
    email: Optional[str]


def _pkce_pair() -> tuple[str, str]:
    """Return (code_verifier, code_challenge) using the S256 method."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode()).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
    return verifier, challenge


class IdentityClient:
    """Request-scoped client for the identity backend."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        allowed_providers: list[str],
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._auth_url = f"{base_url.rstrip('/')}/auth/v1"
        self._allowed_providers = set(allowed_providers)
        self._client = httpx.AsyncClient(
            base_url=self._auth_url,
            headers={"apikey": anon_key},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "IdentityClient":
        return cls(
            settings.backend_url,
            settings.backend_anon_key,
            allowed_providers=settings.oauth_providers,
            timeout=settings.request_timeout_seconds,
            **kwargs,
        )

    async def __aenter__(self) -> "IdentityClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -----------------------------------------------------------------------
    # OAuth
    # -----------------------------------------------------------------------

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        """Build the provider authorization URL. The caller redirects the browser to it."""
        if provider not in self._allowed_providers:
            raise IdentityError(f"OAuth provider '{provider}' is not enabled")

        verifier, challenge = _pkce_pair()
        query = urlencode(
            {
                "provider": provider,
                "redirect_to": redirect_to,
                "code_challenge": challenge,
                "code_challenge_method": "s256",
            }
        )
        return OAuthRedirect(url=f"{self._auth_url}/authorize?{query}", code_verifier=verifier)

    async def exchange_code_for_session(
        self, auth_code: str, code_verifier: str
    ) -> IdentitySession:
        """Exchange an authorization code (plus PKCE verifier) for a session."""
        try:
            response = await self._client.post(
                "/token",
                params={"grant_type": "pkce"},
                json={"auth_code": auth_code, "code_verifier": code_verifier},
            )
        except httpx.HTTPError as exc:
            raise IdentityError(f"Identity backend unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise IdentityError(
                f"Code exchange failed with status {response.status_code}"
            )

        try:
            body = response.json()
            user = body["user"]
            return IdentitySession(
                access_token=body["access_token"],
                refresh_token=body.get("refresh_token"),
                expires_in=int(body.get("expires_in", 3600)),
                user_id=uuid.UUID(user["id"]),
                email=user.get("email"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise IdentityError(f"Malformed session response: {exc}") from exc

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session at the identity backend."""
        try:
            response = await self._client.post(
                "/logout", headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as exc:
            raise IdentityError(f"Identity backend unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise IdentityError(f"Sign-out failed with status {response.status_code}")


async def get_identity_client() -> AsyncGenerator[IdentityClient, None]:
    """FastAPI dependency: one identity client per request."""
    async with IdentityClient.from_settings(get_settings()) as client:
        yield client
