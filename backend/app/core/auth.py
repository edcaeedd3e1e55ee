"""Azure AD access tokens for the admin endpoints: JWKS lookup and claim checks."""

from __future__ import annotations

import logging
import time
from typing import Any

import aiohttp
from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger(__name__)

JWKS_TTL_SECONDS = 24 * 60 * 60
JWKS_TIMEOUT_SECONDS = 15

# tenant id -> (fetched at, key set)
_jwks_cache: dict[str, tuple[float, dict[str, Any]]] = {}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_jwks(tenant_id: str) -> dict[str, Any]:
    cached = _jwks_cache.get(tenant_id)
    now = time.time()
    if cached and now - cached[0] < JWKS_TTL_SECONDS:
        return cached[1]

    jwks_uri = f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"
    logger.info("Fetching JWKS from %s", jwks_uri)
    timeout = aiohttp.ClientTimeout(total=JWKS_TIMEOUT_SECONDS)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(jwks_uri) as response:
                response.raise_for_status()
                jwks = await response.json()
    except aiohttp.ClientError as e:
        logger.error("Failed to fetch JWKS: %s", e)
        if cached:
            logger.warning("Using expired JWKS from cache for tenant %s", tenant_id)
            return cached[1]
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not fetch signing keys",
        ) from e

    _jwks_cache[tenant_id] = (now, jwks)
    return jwks


async def get_signing_key(token: str, tenant_id: str) -> dict[str, str]:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise _unauthorized("Invalid token header") from e

    kid = header.get("kid")
    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    jwks = await get_jwks(tenant_id)
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    raise _unauthorized(f"No matching signing key for kid: {kid}")


async def validate_access_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    """Verify signature, expiry, issuer and audience of an Azure AD token.

    Both v1 and v2 issuers are accepted, and the audience may be the bare
    client id or its ``api://`` form.
    """
    if not tenant_id or not client_id:
        logger.error("Azure AD tenant or client id not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing Azure AD configuration",
        )

    signing_key = await get_signing_key(token, tenant_id)
    algorithm = signing_key.get("alg", Algorithms.RS256)
    public_key = jwk.construct(signing_key, algorithm=algorithm)

    issuers = [
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    ]
    audiences = [client_id, f"api://{client_id}"]

    for issuer in issuers:
        for audience in audiences:
            try:
                return jwt.decode(
                    token,
                    public_key,
                    algorithms=[algorithm],
                    audience=audience,
                    issuer=issuer,
                    options={"require_exp": True, "require_iss": True, "require_aud": True},
                )
            except ExpiredSignatureError as e:
                raise _unauthorized("Token is expired") from e
            except JWTClaimsError:
                continue
            except JWTError as e:
                raise _unauthorized("Invalid token signature") from e

    raise _unauthorized("Invalid token issuer or audience")


def extract_roles(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        return []
    return [str(r) for r in roles if isinstance(r, str | int)]
