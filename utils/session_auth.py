"""Session cookie checks and identity-provider token verification.

The login flow that issues the cookie lives elsewhere; this module only
answers "is there a session" and, for audited writes, "who is it".
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, Request

DEFAULT_COOKIE_NAME = "agri_auth"
CLOCK_LEEWAY_SECONDS = 60
JWKS_TIMEOUT_SECONDS = 4


def cookie_name() -> str:
    return os.getenv("AUTH_COOKIE_NAME") or DEFAULT_COOKIE_NAME


class SessionVerifier:
    """Verify Cognito id tokens against the user pool's JWKS."""

    def __init__(self, region: str, user_pool_id: str, client_id: str) -> None:
        self.issuer = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"
        self.client_id = client_id
        self._jwks = jwt.PyJWKClient(f"{self.issuer}/.well-known/jwks.json", timeout=JWKS_TIMEOUT_SECONDS)

    @classmethod
    def from_env(cls) -> Optional["SessionVerifier"]:
        """Return a verifier when the Cognito settings are present, else None."""
        region = os.getenv("AWS_REGION")
        user_pool_id = os.getenv("COGNITO_USER_POOL_ID")
        client_id = os.getenv("COGNITO_CLIENT_ID")
        if not (region and user_pool_id and client_id):
            return None
        return cls(region, user_pool_id, client_id)

    def verify(self, token: str) -> Dict[str, Any]:
        """Return the token claims; raises `jwt.PyJWTError` when invalid."""
        signing_key = self._jwks.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self.client_id,
            issuer=self.issuer,
            leeway=CLOCK_LEEWAY_SECONDS,
        )


def session_token(request: Request) -> Optional[str]:
    return request.cookies.get(cookie_name()) or None


def require_session(request: Request) -> str:
    """FastAPI dependency: reject requests without a session cookie."""
    token = session_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return token


async def resolve_identity(request: Request) -> Optional[str]:
    """Return the caller's email from a verified session, for audit fields.

    Without a configured verifier the session is accepted as-is and the
    caller stays anonymous.

    Raises:
        HTTPException(401) if the cookie is missing or the token is invalid.
    """
    token = require_session(request)
    verifier: Optional[SessionVerifier] = getattr(request.app.state, "session_verifier", None)
    if verifier is None:
        return None
    try:
        claims = await asyncio.to_thread(verifier.verify, token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid/expired session") from exc
    email = claims.get("email")
    return email.strip() if isinstance(email, str) else None
