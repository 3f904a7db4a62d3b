from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from vqueue.core.config import settings
from vqueue.core.database import get_db
from vqueue.core.deps import SUPER_ADMIN_TOKEN, require_super_admin
from vqueue.core.security import create_token
from vqueue.routes.queue import BusinessOut
from vqueue.services.business_service import (
    create_business,
    delete_business,
    rehash_passwords,
    update_business,
    verify_super_admin,
)
from vqueue.services.queue_service import get_all_businesses
from vqueue.services.ticket_service import repair_counts

router = APIRouter()


class SuperAdminLogin(BaseModel):
    user: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class BusinessCreate(BaseModel):
    slug: str
    name: str
    password: str


class BusinessUpdate(BaseModel):
    slug: str
    name: str
    password: Optional[str] = None


@router.post("/login", response_model=TokenResponse)
def login(data: SuperAdminLogin):
    if not verify_super_admin(data.user, data.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_token(data.user, settings.access_token_expire_minutes, token_type=SUPER_ADMIN_TOKEN)
    return TokenResponse(access_token=token)


@router.get("/businesses", response_model=List[BusinessOut], dependencies=[Depends(require_super_admin)])
def list_businesses(db: Session = Depends(get_db)):
    return get_all_businesses(db)


@router.post("/businesses", response_model=BusinessOut, dependencies=[Depends(require_super_admin)])
def create(data: BusinessCreate, db: Session = Depends(get_db)):
    return create_business(db, slug=data.slug, name=data.name, password=data.password)


@router.put("/businesses/{business_id}", response_model=BusinessOut, dependencies=[Depends(require_super_admin)])
def update(business_id: int, data: BusinessUpdate, db: Session = Depends(get_db)):
    return update_business(db, business_id, name=data.name, slug=data.slug, password=data.password)


@router.delete("/businesses/{business_id}", dependencies=[Depends(require_super_admin)])
def delete(business_id: int, db: Session = Depends(get_db)):
    delete_business(db, business_id)
    return {"message": "Business deleted successfully"}


@router.post("/maintenance/repair-counts", dependencies=[Depends(require_super_admin)])
def run_repair_counts(db: Session = Depends(get_db)):
    return {"businesses": repair_counts(db)}


@router.post("/maintenance/rehash-passwords", dependencies=[Depends(require_super_admin)])
def run_rehash_passwords(db: Session = Depends(get_db)):
    return {"migrated": rehash_passwords(db)}
