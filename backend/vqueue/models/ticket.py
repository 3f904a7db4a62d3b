from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from vqueue.core.ticket_status import TicketStatus
from vqueue.models.business import Base


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_business_status", "business_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    # Not unique: numbering restarts at 1 after a queue reset
    number = Column(Integer, nullable=False)
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=TicketStatus.waiting.value)  # waiting | served | cancelled
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    served_at = Column(DateTime, nullable=True)

    business = relationship("Business", back_populates="tickets")
