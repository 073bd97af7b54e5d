"""Schedule model - the monthly roster and its assignments."""
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class Schedule(Base):
    """Roster for one month."""

    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    month = Column(String, unique=True, nullable=False, index=True)  # YYYY-MM

    # Relationships
    assignments = relationship(
        "ScheduleAssignment",
        back_populates="schedule",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def assignments_for(self, service_id: str) -> list["ScheduleAssignment"]:
        """Assignments of a single service in this month."""
        return [a for a in self.assignments if a.service_id == service_id]


class ScheduleAssignment(Base):
    """A person placed on a position for one service."""

    __tablename__ = "schedule_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False)
    service_id = Column(String, nullable=False, index=True)
    person_id = Column(String, nullable=True)
    position_id = Column(String, nullable=True)

    # Relationship
    schedule = relationship("Schedule", back_populates="assignments")
