from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from vqueue.core.database import get_db
from vqueue.core.deps import get_business
from vqueue.models.business import Business
from vqueue.services.ticket_service import join_queue, leave_queue
from vqueue.services.wait_estimator import describe_ticket

router = APIRouter()


class BusinessOut(BaseModel):
    id: int
    slug: str
    name: str
    is_online: bool = True
    current_serving: int
    last_issued: int
    active_count: int

    @field_validator("is_online", mode="before")
    @classmethod
    def unset_means_online(cls, value):
        return True if value is None else value

    class Config:
        from_attributes = True


class JoinRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class JoinResponse(BaseModel):
    ticket_id: int
    number: int


class LeaveRequest(BaseModel):
    ticket_id: int


class ActiveTicketOut(BaseModel):
    id: int
    business_id: int
    number: int
    name: Optional[str]
    phone: Optional[str]
    status: str
    created_at: datetime
    served_at: Optional[datetime]
    people_ahead: Optional[int]
    estimated_wait_minutes: Optional[int]


@router.get("/tickets/{ticket_id}", response_model=ActiveTicketOut)
def get_active_ticket(ticket_id: int, db: Session = Depends(get_db)):
    ticket = describe_ticket(db, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.get("/{slug}", response_model=BusinessOut)
def read_business(business: Business = Depends(get_business)):
    return business


@router.post("/{slug}/join", response_model=JoinResponse)
def join(slug: str, data: JoinRequest, db: Session = Depends(get_db)):
    ticket = join_queue(db, slug, name=data.name, phone=data.phone)
    return JoinResponse(ticket_id=ticket.id, number=ticket.number)


@router.post("/{slug}/leave")
def leave(slug: str, data: LeaveRequest, db: Session = Depends(get_db)):
    cancelled = leave_queue(db, slug, data.ticket_id)
    return {"ok": True, "cancelled": cancelled}
