"""
Ticket ledger: issuing, cancelling and closing tickets.

Counter changes that hand out numbers are a single ``UPDATE ... RETURNING`` so
two concurrent joins never draw the same number. Other mutations lock the
owning business row with ``with_for_update()`` first.
The functions commit on success; the caller does not need to.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from vqueue.core.errors import ClosedError, InvalidTransitionError, NotFoundError
from vqueue.core.ticket_status import ALLOWED_TRANSITIONS, TicketStatus
from vqueue.models.business import Business
from vqueue.models.ticket import Ticket


logger = logging.getLogger(__name__)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def lock_business(db: Session, slug: Optional[str] = None, business_id: Optional[int] = None) -> Business:
    """Load a business row for update, by slug or by id."""
    query = db.query(Business)
    if slug is not None:
        query = query.filter(Business.slug == slug)
    else:
        query = query.filter(Business.id == business_id)
    business = query.with_for_update().first()
    if not business:
        raise NotFoundError("Business not found")
    return business


def bump_business(db: Session, slug: str, *criteria, **values):
    """
    Apply counter arithmetic to one business in a single UPDATE.

    ``values`` are SQL expressions (``Business.last_issued + 1``), so the new
    value is computed by the database, not from a stale read. Returns the
    updated row (id plus the changed columns), or None when no business with
    this slug matches ``criteria``.
    """
    return db.execute(
        update(Business)
        .where(Business.slug == slug, *criteria)
        .values(**values)
        .returning(Business.id, *[getattr(Business, column) for column in values])
        .execution_options(synchronize_session=False)
    ).first()


def business_name(db: Session, slug: str) -> Optional[str]:
    row = db.query(Business.name).filter(Business.slug == slug).first()
    return row.name if row else None


def transition(
    ticket: Ticket,
    new_status: TicketStatus,
    now: Optional[datetime] = None,
    stamp: bool = True,
) -> Ticket:
    """
    Move a ticket to a new status.

    The only place ticket statuses change. ``waiting`` may become ``served`` or
    ``cancelled``; both of those are final. ``served_at`` is set on serving
    unless ``stamp`` is False.
    """
    current = TicketStatus(ticket.status)
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Ticket #{ticket.number} cannot go from {current.value} to {new_status.value}"
        )
    ticket.status = new_status.value
    if new_status == TicketStatus.served and stamp:
        ticket.served_at = now or datetime.utcnow()
    return ticket


def find_waiting_by_number(db: Session, business_id: int, number: int) -> Optional[Ticket]:
    return db.query(Ticket).filter(
        Ticket.business_id == business_id,
        Ticket.status == TicketStatus.waiting.value,
        Ticket.number == number,
    ).order_by(Ticket.id.desc()).first()


def count_waiting(db: Session, business_id: int) -> int:
    return db.query(Ticket).filter(
        Ticket.business_id == business_id,
        Ticket.status == TicketStatus.waiting.value,
    ).count()


def get_ticket(db: Session, ticket_id: int) -> Optional[Ticket]:
    return db.get(Ticket, ticket_id)


def get_ticket_by_number(db: Session, business_id: int, number: int) -> Optional[Ticket]:
    """Latest ticket issued with this number (numbers repeat after a reset)."""
    return db.query(Ticket).filter(
        Ticket.business_id == business_id,
        Ticket.number == number,
    ).order_by(Ticket.id.desc()).first()


def join_queue(db: Session, slug: str, name: Optional[str] = None, phone: Optional[str] = None) -> Ticket:
    bumped = bump_business(
        db, slug,
        Business.is_online.isnot(False),
        last_issued=Business.last_issued + 1,
        active_count=Business.active_count + 1,
    )
    if bumped is None:
        name_on_record = business_name(db, slug)
        db.rollback()
        if name_on_record is None:
            raise NotFoundError("Business not found")
        raise ClosedError(f"{name_on_record} is not accepting new tickets right now")

    number = bumped.last_issued
    ticket = Ticket(
        business_id=bumped.id,
        number=number,
        name=_normalize_text(name),
        phone=_normalize_text(phone),
        status=TicketStatus.waiting.value,
        created_at=datetime.utcnow(),
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info("join slug=%s ticket=%s number=%s", slug, ticket.id, number)
    return ticket


def leave_queue(db: Session, slug: str, ticket_id: int) -> bool:
    """
    Cancel a waiting ticket.

    Returns True when a ticket was cancelled. Unknown tickets, tickets of another
    business and tickets already served or cancelled are left alone.
    """
    business = lock_business(db, slug=slug)
    ticket = db.get(Ticket, ticket_id)
    if not ticket or ticket.business_id != business.id or ticket.status != TicketStatus.waiting.value:
        db.rollback()
        return False

    transition(ticket, TicketStatus.cancelled)
    business.active_count = max(0, (business.active_count or 0) - 1)
    db.commit()
    logger.info("leave slug=%s ticket=%s number=%s", slug, ticket.id, ticket.number)
    return True


def repair_business(db: Session, business_id: int) -> Dict[str, int]:
    """
    Recompute a business's ticket state from the ticket rows.

    Waiting tickets at or below ``current_serving`` were called already and are
    closed as served; ``active_count`` is set to the remaining waiting tickets.
    Running it twice changes nothing the second time.

    Closed tickets get no ``served_at``: their real service time is unknown and
    a shared repair timestamp would skew the wait estimate.
    """
    business = lock_business(db, business_id=business_id)
    stale = db.query(Ticket).filter(
        Ticket.business_id == business.id,
        Ticket.status == TicketStatus.waiting.value,
        Ticket.number <= business.current_serving,
    ).all()
    for ticket in stale:
        transition(ticket, TicketStatus.served, stamp=False)
    db.flush()

    business.active_count = count_waiting(db, business.id)
    db.commit()
    if stale:
        logger.info("repair slug=%s closed %s stale tickets", business.slug, len(stale))
    return {"served": len(stale), "active_count": business.active_count}


def repair_counts(db: Session) -> Dict[str, Dict[str, int]]:
    business_ids = [row.id for row in db.query(Business.id).order_by(Business.id).all()]
    summary = {}
    for business_id in business_ids:
        result = repair_business(db, business_id)
        summary[db.get(Business, business_id).slug] = result
    return summary
