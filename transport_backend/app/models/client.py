"""
Client database model.

Clients book trips; their tier drives the frequent-client discounts.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.fleet_enums import ClientTier


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    document_number = Column(String(20), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    company_name = Column(String(150), nullable=True)

    tier = Column(Enum(ClientTier), default=ClientTier.STANDARD, nullable=False)
    completed_trips = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.full_name}', tier='{self.tier.value}')>"
