"""
Position and wait-time estimates for a waiting ticket.

The estimate is a plain moving average over the most recently served tickets:
average minutes between consecutive services, times the number of people ahead.
Nothing is cached; every call reads the current rows.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vqueue.core.config import settings
from vqueue.core.ticket_status import TicketStatus
from vqueue.models.business import Business
from vqueue.models.ticket import Ticket


def people_ahead(db: Session, ticket: Ticket, business: Business) -> Optional[int]:
    """Waiting tickets with a lower number, or None once the ticket has been called."""
    if ticket.status != TicketStatus.waiting.value or ticket.number <= business.current_serving:
        return None
    return db.query(Ticket).filter(
        Ticket.business_id == ticket.business_id,
        Ticket.status == TicketStatus.waiting.value,
        Ticket.number < ticket.number,
    ).count()


def minutes_per_ticket(served_times: List[datetime], default_minutes: int) -> int:
    """
    Average service interval in whole minutes (at least 1).

    ``served_times`` is ordered newest first. With fewer than two samples there
    is no interval to measure and ``default_minutes`` is used.
    """
    if len(served_times) < 2:
        return default_minutes
    newest, oldest = served_times[0], served_times[-1]
    average_seconds = (newest - oldest).total_seconds() / (len(served_times) - 1)
    return max(1, int(average_seconds / 60 + 0.5))


def recent_served_times(db: Session, business_id: int, sample_size: int) -> List[datetime]:
    rows = db.query(Ticket.served_at).filter(
        Ticket.business_id == business_id,
        Ticket.status == TicketStatus.served.value,
        Ticket.served_at.isnot(None),
    ).order_by(Ticket.served_at.desc()).limit(sample_size).all()
    return [row.served_at for row in rows]


def estimate_wait_minutes(
    db: Session,
    business: Business,
    ahead: int,
    sample_size: Optional[int] = None,
    default_minutes: Optional[int] = None,
) -> int:
    if sample_size is None:
        sample_size = settings.wait_sample_size
    if default_minutes is None:
        default_minutes = settings.default_wait_minutes
    served_times = recent_served_times(db, business.id, sample_size)
    return minutes_per_ticket(served_times, default_minutes) * ahead


def describe_ticket(db: Session, ticket_id: int) -> Optional[Dict[str, Any]]:
    """Ticket fields plus live ``people_ahead`` and ``estimated_wait_minutes``."""
    ticket = db.get(Ticket, ticket_id)
    if not ticket:
        return None
    business = db.get(Business, ticket.business_id)

    ahead = people_ahead(db, ticket, business)
    return {
        "id": ticket.id,
        "business_id": ticket.business_id,
        "number": ticket.number,
        "name": ticket.name,
        "phone": ticket.phone,
        "status": ticket.status,
        "created_at": ticket.created_at,
        "served_at": ticket.served_at,
        "people_ahead": ahead,
        "estimated_wait_minutes": estimate_wait_minutes(db, business, ahead) if ahead is not None else None,
    }
