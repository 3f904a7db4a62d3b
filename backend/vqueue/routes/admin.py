from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from vqueue.core.config import settings
from vqueue.core.database import get_db
from vqueue.core.deps import BUSINESS_TOKEN, get_business, require_business_admin
from vqueue.core.security import create_token
from vqueue.models.business import Business
from vqueue.services.business_service import verify_password
from vqueue.services.notification_service import get_notification_service
from vqueue.services.queue_service import next_customer, reset_queue, set_online, toggle_status
from vqueue.services.ticket_service import get_ticket_by_number

router = APIRouter()


class VerifyPasswordRequest(BaseModel):
    password: str
    set_online: Optional[bool] = None


class VerifyPasswordResponse(BaseModel):
    valid: bool
    access_token: Optional[str] = None
    token_type: str = "bearer"


class AdvanceOut(BaseModel):
    current_serving: int
    served_number: Optional[int] = None
    notified_number: Optional[int] = None


class TicketOut(BaseModel):
    id: int
    number: int
    name: Optional[str]
    phone: Optional[str]
    status: str

    class Config:
        from_attributes = True


@router.post("/{slug}/verify-password", response_model=VerifyPasswordResponse)
def verify_password_endpoint(slug: str, data: VerifyPasswordRequest, db: Session = Depends(get_db)):
    if not verify_password(db, slug, data.password, set_online=data.set_online):
        return VerifyPasswordResponse(valid=False)
    token = create_token(slug, settings.access_token_expire_minutes, token_type=BUSINESS_TOKEN)
    return VerifyPasswordResponse(valid=True, access_token=token)


@router.post("/{slug}/logout", dependencies=[Depends(require_business_admin)])
def logout(slug: str, db: Session = Depends(get_db)):
    return {"is_online": set_online(db, slug, False)}


@router.post("/{slug}/next", response_model=AdvanceOut, dependencies=[Depends(require_business_admin)])
def call_next_customer(slug: str, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    result = next_customer(db, slug)
    out = AdvanceOut(
        current_serving=result.current_serving,
        served_number=result.served_ticket.number if result.served_ticket else None,
    )
    if result.notify_ticket:
        # Copy plain values; the session is closed by the time the task runs
        phone, number = result.notify_ticket.phone, result.notify_ticket.number
        background_tasks.add_task(get_notification_service().notify_ticket, phone, number)
        out.notified_number = number
    return out


@router.post("/{slug}/reset", dependencies=[Depends(require_business_admin)])
def reset(slug: str, db: Session = Depends(get_db)):
    return {"cancelled": reset_queue(db, slug)}


@router.post("/{slug}/toggle", dependencies=[Depends(require_business_admin)])
def toggle(slug: str, db: Session = Depends(get_db)):
    return {"is_online": toggle_status(db, slug)}


@router.get("/{slug}/tickets/{number}", response_model=TicketOut, dependencies=[Depends(require_business_admin)])
def read_ticket_by_number(number: int, db: Session = Depends(get_db), business: Business = Depends(get_business)):
    ticket = get_ticket_by_number(db, business.id, number)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket
