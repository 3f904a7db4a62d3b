from sqlalchemy import Column, Integer, String, UniqueConstraint, Boolean, DateTime
from datetime import datetime
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class Business(Base):
    __tablename__ = "businesses"
    __table_args__ = (UniqueConstraint("slug", name="uq_business_slug"),)

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # bcrypt hash; rows created before hashing was introduced hold the plain value
    password_hash = Column(String(255), nullable=True)
    # NULL on old rows, read as online
    is_online = Column(Boolean, nullable=True, default=True)
    current_serving = Column(Integer, nullable=False, default=0)
    last_issued = Column(Integer, nullable=False, default=0)
    # Cached count of waiting tickets, see ticket_service.repair_business
    active_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    tickets = relationship("Ticket", back_populates="business", passive_deletes=True)

    @property
    def online(self) -> bool:
        return self.is_online is not False
