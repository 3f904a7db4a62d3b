from enum import Enum


class TicketStatus(str, Enum):
    waiting = "waiting"
    served = "served"
    cancelled = "cancelled"


ALLOWED_TRANSITIONS = {
    TicketStatus.waiting: {TicketStatus.served, TicketStatus.cancelled},
    TicketStatus.served: set(),
    TicketStatus.cancelled: set(),
}
