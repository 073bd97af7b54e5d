"""Service model - a scheduled worship service and its song list."""
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class Service(Base):
    """A single service on a given date."""

    __tablename__ = "services"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    date = Column(String, nullable=False, index=True)  # YYYY-MM-DD
    start_time = Column(String, nullable=True)  # HH:MM

    # Relationships
    songs = relationship("ServiceSong", back_populates="service", cascade="all, delete-orphan")


class ServiceSong(Base):
    """A song entered in a service's repertoire."""

    __tablename__ = "service_songs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(String, ForeignKey("services.id"), nullable=False, index=True)
    title = Column(String, nullable=False)

    # Relationship
    service = relationship("Service", back_populates="songs")
