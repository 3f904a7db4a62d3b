import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from vqueue.core.config import settings


logger = logging.getLogger(__name__)

password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

LEGACY_PLAINTEXT = "plaintext"


def hash_password(password: str) -> str:
    return password_context.hash(password)


def identify_scheme(stored: Optional[str]) -> Optional[str]:
    """Return the hashing scheme of a stored credential.

    Values no registered scheme recognises were written before passwords were
    hashed and are reported as ``LEGACY_PLAINTEXT``. ``None`` means no credential.
    """
    if not stored:
        return None
    return password_context.identify(stored) or LEGACY_PLAINTEXT


def verify_password(password: str, stored: Optional[str]) -> bool:
    scheme = identify_scheme(stored)
    if scheme is None:
        return False
    if scheme == LEGACY_PLAINTEXT:
        if not settings.allow_plaintext_passwords:
            logger.warning("rejected legacy plaintext credential; run the password rehash maintenance task")
            return False
        logger.warning("legacy plaintext credential compared; run the password rehash maintenance task")
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))
    try:
        return password_context.verify(password, stored)
    except ValueError as e:
        # Looks like a bcrypt hash but is malformed
        logger.error("unreadable %s credential: %s", scheme, e)
        return False


def create_token(subject: str, expires_minutes: int, token_type: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
