"""
Resource Lock database model.

Ensures a driver or vehicle is held by at most one active trip through a
DB-level partial unique index.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.fleet_enums import ResourceType


class ResourceLock(Base):
    """
    Resource Lock model.

    Created when a trip starts, released when it completes or is cancelled.
    """
    __tablename__ = "resource_locks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    resource_type = Column(Enum(ResourceType), nullable=False)
    resource_id = Column(Integer, nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, index=True)

    locked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    released_at = Column(DateTime(timezone=True), nullable=True)

    # Only one active lock per resource
    __table_args__ = (
        Index(
            'ix_resource_locks_active', 'resource_type', 'resource_id', unique=True,
            postgresql_where=text('released_at IS NULL'),
            sqlite_where=text('released_at IS NULL'),
        ),
    )

    def __repr__(self):
        return (
            f"<ResourceLock({self.resource_type.value}:{self.resource_id}, trip_id={self.trip_id}, "
            f"active={self.released_at is None})>"
        )
