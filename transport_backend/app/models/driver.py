"""
Driver database model.

A driver is available iff not committed to an active trip.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Enum
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.fleet_enums import LicenseClass


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    document_number = Column(String(20), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)

    # License
    license_number = Column(String(15), nullable=False)
    license_class = Column(Enum(LicenseClass), nullable=False)
    license_expiry = Column(Date, nullable=False)
    years_experience = Column(Integer, default=0, nullable=False)

    # Dispatch state
    is_available = Column(Boolean, default=True, nullable=False, index=True)
    completed_trips = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.full_name}', class='{self.license_class.value}', available={self.is_available})>"
