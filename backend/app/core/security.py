"""Password-reset token signing and password hashing."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from app.core.exceptions import ResetTokenError

logger = logging.getLogger(__name__)

RESET_TOKEN_ALGORITHM = Algorithms.HS512
DEFAULT_EXPIRY_MINUTES = 24 * 60

PBKDF2_ITERATIONS = 200_000


def create_reset_token(
    email: str,
    salt: str,
    *,
    expires_minutes: int = DEFAULT_EXPIRY_MINUTES,
    now: datetime | None = None,
) -> str:
    """Sign a reset token with the employee's salt.

    The salt is only the HMAC key and never appears in the claims. Rotating
    the salt invalidates every token issued before the rotation.
    """
    if not salt:
        raise ResetTokenError("Missing signing salt")

    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": email,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(claims, salt, algorithm=RESET_TOKEN_ALGORITHM)


def decode_reset_token(token: str, salt: str) -> dict[str, Any]:
    if not token or not salt:
        raise ResetTokenError("Missing token or signing salt")

    try:
        return jwt.decode(
            token,
            salt,
            algorithms=[RESET_TOKEN_ALGORITHM],
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError as e:
        raise ResetTokenError("Token is expired") from e
    except (JWTClaimsError, JWTError) as e:
        logger.info("Reset token rejected: %s", e)
        raise ResetTokenError("Invalid reset token") from e


def generate_salt() -> str:
    return secrets.token_hex(16)


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS)
    return digest.hex()


def verify_password(password: str, salt: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_password(password, salt), expected_hash)
