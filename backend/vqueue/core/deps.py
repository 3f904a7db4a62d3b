from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from vqueue.core.database import get_db
from vqueue.core.security import decode_token
from vqueue.models.business import Business
from vqueue.services import queue_service

BUSINESS_TOKEN = "business"
SUPER_ADMIN_TOKEN = "super_admin"


def get_business(slug: str, db: Session = Depends(get_db)) -> Business:
    business = queue_service.get_business(db, slug)
    if not business:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")
    return business


def get_token_payload(authorization: Optional[str] = Header(None)) -> dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload


def require_business_admin(slug: str, payload: dict[str, Any] = Depends(get_token_payload)) -> dict[str, Any]:
    if payload.get("type") != BUSINESS_TOKEN or payload.get("sub") != slug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access to this business required")
    return payload


def require_super_admin(payload: dict[str, Any] = Depends(get_token_payload)) -> dict[str, Any]:
    if payload.get("type") != SUPER_ADMIN_TOKEN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin role required")
    return payload
