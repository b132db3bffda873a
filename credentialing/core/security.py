"""
Credential hashing, temporary credentials and admin bearer tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import secrets
import string
import logging

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8
TEMPORARY_CREDENTIAL_LENGTH = 8
TEMPORARY_CREDENTIAL_ALPHABET = string.ascii_lowercase + string.digits


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a plain credential against a stored bcrypt hash.

    Accounts without a credential (directory leads) never match.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def generate_temporary_credential(length: int = TEMPORARY_CREDENTIAL_LENGTH) -> str:
    """Random lowercase alphanumeric password issued on a credential reset."""
    return "".join(secrets.choice(TEMPORARY_CREDENTIAL_ALPHABET) for _ in range(length))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed admin bearer token.

    Args:
        data: Claims to encode; the admin id goes under "sub"
        expires_delta: Lifetime, defaults to ``settings.access_token_expire_minutes``

    Returns:
        str: Encoded JWT
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a bearer token.

    Returns:
        The claims, or None when the token is malformed, tampered with or expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        logger.warning("Rejected invalid or expired access token")
        return None
