"""
Queue controller: business-level counters and the admin actions on them.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from vqueue.core.config import settings
from vqueue.core.errors import NotFoundError, QueueEmptyError
from vqueue.core.ticket_status import TicketStatus
from vqueue.models.business import Business
from vqueue.models.ticket import Ticket
from vqueue.services.ticket_service import (
    bump_business,
    business_name,
    find_waiting_by_number,
    lock_business,
    transition,
)


logger = logging.getLogger(__name__)


@dataclass
class AdvanceResult:
    current_serving: int
    served_ticket: Optional[Ticket] = None
    # Waiting ticket a few places behind the counter that should get a heads-up
    notify_ticket: Optional[Ticket] = None


def get_business(db: Session, slug: str) -> Optional[Business]:
    return db.query(Business).filter(Business.slug == slug).first()


def get_all_businesses(db: Session) -> List[Business]:
    return db.query(Business).order_by(Business.created_at.asc(), Business.id.asc()).all()


def next_customer(db: Session, slug: str, notify_spots_ahead: Optional[int] = None) -> AdvanceResult:
    """
    Call the next ticket.

    ``current_serving`` moves up by one and the ticket numbered just below the
    new value is closed as served, if it is still waiting. Cancelled tickets are
    never marked served. On a fresh queue the first call looks for ticket #0,
    which does not exist, so nothing is closed.

    The counter moves in one conditional UPDATE, so concurrent calls each get
    their own ``current_serving`` value.
    """
    bumped = bump_business(
        db, slug,
        Business.current_serving <= Business.last_issued,
        current_serving=Business.current_serving + 1,
        active_count=case((Business.active_count > 0, Business.active_count - 1), else_=0),
    )
    if bumped is None:
        exists = business_name(db, slug) is not None
        db.rollback()
        if not exists:
            raise NotFoundError("Business not found")
        raise QueueEmptyError("No customers left to call")

    serving = bumped.current_serving
    result = AdvanceResult(current_serving=serving)

    finished = find_waiting_by_number(db, bumped.id, serving - 1)
    if finished:
        result.served_ticket = transition(finished, TicketStatus.served, datetime.utcnow())

    spots = settings.notify_spots_ahead if notify_spots_ahead is None else notify_spots_ahead
    if spots > 0:
        upcoming = find_waiting_by_number(db, bumped.id, serving + spots)
        if upcoming and upcoming.phone:
            result.notify_ticket = upcoming

    db.commit()
    logger.info(
        "advance slug=%s current_serving=%s served=%s",
        slug, serving, finished.number if finished else None,
    )
    return result


def toggle_status(db: Session, slug: str) -> bool:
    business = lock_business(db, slug=slug)
    business.is_online = not business.online
    db.commit()
    logger.info("toggle slug=%s is_online=%s", slug, business.is_online)
    return business.is_online


def set_online(db: Session, slug: str, online: bool) -> bool:
    business = lock_business(db, slug=slug)
    business.is_online = online
    db.commit()
    return online


def reset_queue(db: Session, slug: str) -> int:
    """
    Cancel every waiting ticket and restart numbering at 1.

    Irreversible. Returns the number of tickets cancelled.
    """
    business = lock_business(db, slug=slug)
    waiting = db.query(Ticket).filter(
        Ticket.business_id == business.id,
        Ticket.status == TicketStatus.waiting.value,
    ).all()
    for ticket in waiting:
        transition(ticket, TicketStatus.cancelled)

    business.current_serving = 0
    business.last_issued = 0
    business.active_count = 0
    db.commit()
    logger.warning("reset slug=%s cancelled=%s", slug, len(waiting))
    return len(waiting)
