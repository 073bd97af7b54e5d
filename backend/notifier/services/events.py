"""Domain events and the notification plan each one produces."""
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..errors import UnsupportedEventError, ValidationError
from ..models.enums import NotificationCategory
from .recipients import AllUsers, ByLinkedPerson, ServiceParticipants, Target


@dataclass(frozen=True)
class AssignmentChanged:
    person_id: str
    service_date: str = ""


@dataclass(frozen=True)
class ServiceSongsUpdated:
    service_id: str
    songs_count: int = 0


@dataclass(frozen=True)
class AnnouncementCreated:
    title: Optional[str] = None


@dataclass(frozen=True)
class MonthlyScheduleCreated:
    month: str = ""


@dataclass(frozen=True)
class CatalogSongCreated:
    title: Optional[str] = None


Event = Union[
    AssignmentChanged,
    ServiceSongsUpdated,
    AnnouncementCreated,
    MonthlyScheduleCreated,
    CatalogSongCreated,
]


@dataclass(frozen=True)
class NotificationPlan:
    """Who receives an event and what they are told."""
    target: Target
    category: NotificationCategory
    title: str
    body: str
    link: str


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_event(event_type: Optional[str], data: Optional[dict] = None) -> Event:
    """Build an Event from the wire ``type`` and its ``data`` object."""
    data = data or {}
    if not event_type:
        raise ValidationError("type is required")

    if event_type == "assignment_changed":
        person_id = _text(data.get("personId"))
        if not person_id:
            raise ValidationError("personId is required")
        return AssignmentChanged(person_id=person_id, service_date=_text(data.get("serviceDate")))

    if event_type == "service_songs_updated":
        service_id = _text(data.get("serviceId"))
        if not service_id:
            raise ValidationError("serviceId is required")
        try:
            songs_count = int(data.get("songsCount") or 0)
        except (TypeError, ValueError):
            raise ValidationError("songsCount must be a number")
        return ServiceSongsUpdated(service_id=service_id, songs_count=songs_count)

    if event_type == "announcement_created":
        return AnnouncementCreated(title=data.get("title"))

    if event_type == "monthly_schedule_created":
        return MonthlyScheduleCreated(month=_text(data.get("month")))

    if event_type == "catalog_song_created":
        return CatalogSongCreated(title=data.get("title"))

    raise UnsupportedEventError(f"Unsupported event type: {event_type}")


def plan_for_event(event: Event) -> NotificationPlan:
    """Map an event to its recipients, category and message."""
    if isinstance(event, AssignmentChanged):
        return NotificationPlan(
            target=ByLinkedPerson((event.person_id,)),
            category=NotificationCategory.ASSIGNMENT,
            title="New assignment",
            body=f"You have been added to or updated in a schedule ({event.service_date}).",
            link="/schedules",
        )

    if isinstance(event, ServiceSongsUpdated):
        return NotificationPlan(
            target=ServiceParticipants(event.service_id),
            category=NotificationCategory.SERVICE_SONGS,
            title="Repertoire updated",
            body=f"The songs for the service have been updated ({event.songs_count}).",
            link=f"/services/{event.service_id}",
        )

    if isinstance(event, AnnouncementCreated):
        return NotificationPlan(
            target=AllUsers(),
            category=NotificationCategory.ANNOUNCEMENTS,
            title="New announcement",
            body=_text(event.title) or "A new announcement is available",
            link="/",
        )

    if isinstance(event, MonthlyScheduleCreated):
        return NotificationPlan(
            target=AllUsers(),
            category=NotificationCategory.MONTHLY_SCHEDULE,
            title="New monthly schedule",
            body=f"The schedule for {event.month} is available.",
            link="/schedules",
        )

    if isinstance(event, CatalogSongCreated):
        return NotificationPlan(
            target=AllUsers(),
            category=NotificationCategory.CATALOG,
            title="New song in catalog",
            body=_text(event.title) or "A new song has been added.",
            link="/songs",
        )

    raise UnsupportedEventError(f"No notification plan for {type(event).__name__}")
