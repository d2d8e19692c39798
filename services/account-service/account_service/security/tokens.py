"""Utilities for issuing and validating access tokens for authenticated accounts."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..config import Settings


def issue_access_token(settings: Settings, *, subject: str, login_id: str) -> tuple[str, int]:
    """Create a signed JWT representing an authenticated account.

    Parameters
    ----------
    settings:
        Supplies the signing secret, issuer, and token lifetime.
    subject:
        Account identifier to embed in the token `sub` claim.
    login_id:
        Login identifier echoed in the `login_id` claim for downstream display.

    Returns
    -------
    tuple[str, int]
        A tuple containing the encoded JWT string and its TTL (in seconds).
    """

    now = int(time.time())
    expires_in = settings.jwt_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": subject,
        "login_id": login_id,
        "iat": now,
        "exp": now + expires_in,
    }

    token = jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
    return token, expires_in


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is invalid, expired, or signed by another issuer.
    """

    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=settings.jwt_issuer,
    )
