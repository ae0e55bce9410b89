"""
Credential hashing and signed access tokens for the identity provider

New hashes use argon2 when it is installed and bcrypt otherwise. Hashes
from either scheme verify, with passlib as the last resort for legacy
formats.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def _probe_argon2() -> bool:
    try:
        import argon2
        hasher = argon2.PasswordHasher()
        return hasher.verify(hasher.hash("probe"), "probe")
    except Exception as e:
        logger.warning(f"Argon2 backend not available: {e}")
        return False


def _probe_bcrypt() -> bool:
    try:
        import bcrypt
        return bcrypt.checkpw(b"probe", bcrypt.hashpw(b"probe", bcrypt.gensalt()))
    except Exception as e:
        logger.warning(f"Bcrypt backend not available: {e}")
        return False


argon2_available = _probe_argon2()
bcrypt_available = _probe_bcrypt()

if not (argon2_available or bcrypt_available):
    logger.critical("No password hashing backend; install argon2-cffi or bcrypt")
    raise RuntimeError("No password hashing backends available")

legacy_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def validate_password(password: Optional[str]) -> str:
    """
    Check a candidate password and return it unchanged

    Surrounding whitespace is part of the password; sign-in compares the
    exact string.

    Raises:
        ValueError: with a message suitable for an invalid-argument error
    """
    password = password or ""
    if not password.strip():
        raise ValueError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return password


def hash_password(password: str) -> str:
    if argon2_available:
        import argon2
        return argon2.PasswordHasher().hash(password)

    import bcrypt
    return bcrypt.hashpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """True if plain_password matches the stored hash; never raises"""
    if not hashed_password:
        return False

    if hashed_password.startswith("$argon2"):
        if not argon2_available:
            return False
        import argon2
        try:
            return argon2.PasswordHasher().verify(hashed_password, plain_password)
        except argon2.exceptions.VerificationError:
            return False
        except argon2.exceptions.InvalidHashError:
            return False

    if bcrypt_available:
        import bcrypt
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8")[:MAX_PASSWORD_BYTES], hashed_password.encode("utf-8"))
        except ValueError:
            pass

    try:
        return legacy_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """Sign claims into a JWT with iat and exp set"""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)

    payload = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + lifetime
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of a JWT

    Raises:
        ValueError: If the token is malformed, forged or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid token")
