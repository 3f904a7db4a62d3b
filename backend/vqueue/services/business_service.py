from __future__ import annotations

import hmac
import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from vqueue.core.config import settings
from vqueue.core.errors import ConflictError, NotFoundError, ValidationError
from vqueue.core.security import LEGACY_PLAINTEXT, hash_password, identify_scheme, verify_password as check_password
from vqueue.models.business import Business
from vqueue.models.ticket import Ticket


logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def _clean_slug(slug: Optional[str]) -> str:
    cleaned = (slug or "").strip().lower()
    if not cleaned:
        raise ValidationError("Slug is required")
    if not SLUG_RE.match(cleaned):
        raise ValidationError("Slug may only contain letters, digits, '-' and '_'")
    return cleaned


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned


def _ensure_slug_free(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Business).filter(Business.slug == slug)
    if exclude_id is not None:
        query = query.filter(Business.id != exclude_id)
    if query.first():
        raise ConflictError(f"Slug '{slug}' is already taken")


def verify_password(db: Session, slug: str, password: str, set_online: Optional[bool] = None) -> bool:
    """
    Check a business admin password.

    Never raises for an unknown slug or a wrong password, it returns False.
    When ``set_online`` is given and the password matches, ``is_online`` is set
    in the same commit (admin login opens the queue, logout closes it).
    """
    business = db.query(Business).filter(Business.slug == slug).with_for_update().first()
    if not business or not check_password(password or "", business.password_hash):
        db.rollback()
        return False

    if set_online is None:
        db.rollback()
        return True

    business.is_online = set_online
    db.commit()
    logger.info("admin login slug=%s is_online=%s", slug, set_online)
    return True


def verify_super_admin(user: str, password: str) -> bool:
    user_ok = hmac.compare_digest((user or "").encode("utf-8"), settings.super_admin_user.encode("utf-8"))
    password_ok = hmac.compare_digest((password or "").encode("utf-8"), settings.super_admin_password.encode("utf-8"))
    return user_ok and password_ok


def create_business(db: Session, slug: str, name: str, password: str) -> Business:
    slug = _clean_slug(slug)
    name = _clean_name(name)
    if not password:
        raise ValidationError("Password is required")
    _ensure_slug_free(db, slug)

    business = Business(
        slug=slug,
        name=name,
        password_hash=hash_password(password),
        is_online=True,
        current_serving=0,
        last_issued=0,
        active_count=0,
    )
    db.add(business)
    db.commit()
    db.refresh(business)
    logger.info("created business id=%s slug=%s", business.id, slug)
    return business


def update_business(
    db: Session,
    business_id: int,
    name: str,
    slug: str,
    password: Optional[str] = None,
) -> Business:
    """Rename a business. The stored password only changes when a new one is given."""
    business = db.get(Business, business_id)
    if not business:
        raise NotFoundError("Business not found")

    slug = _clean_slug(slug)
    _ensure_slug_free(db, slug, exclude_id=business.id)
    business.slug = slug
    business.name = _clean_name(name)
    if password:
        business.password_hash = hash_password(password)

    db.commit()
    db.refresh(business)
    logger.info("updated business id=%s slug=%s password_changed=%s", business.id, slug, bool(password))
    return business


def delete_business(db: Session, business_id: int) -> None:
    business = db.get(Business, business_id)
    if not business:
        raise NotFoundError("Business not found")

    slug = business.slug
    deleted = db.query(Ticket).filter(Ticket.business_id == business.id).delete(synchronize_session=False)
    db.delete(business)
    db.commit()
    logger.warning("deleted business id=%s slug=%s tickets=%s", business_id, slug, deleted)


def rehash_passwords(db: Session) -> int:
    """Hash every password still stored in plain text. Returns how many were migrated."""
    migrated = 0
    for business in db.query(Business).all():
        if identify_scheme(business.password_hash) == LEGACY_PLAINTEXT:
            business.password_hash = hash_password(business.password_hash)
            migrated += 1
    db.commit()
    if migrated:
        logger.info("rehashed %s legacy passwords", migrated)
    return migrated
