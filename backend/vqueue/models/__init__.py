from .business import Base, Business
from .ticket import Ticket

__all__ = ["Base", "Business", "Ticket"]
