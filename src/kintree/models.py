"""Data classes for family tree entities."""

from dataclasses import dataclass, field

GENDERS = ("male", "female", "other", "unknown")


@dataclass
class Position:
    x: float
    y: float


@dataclass
class EventDetails:
    date: str = ""
    place: str = ""


@dataclass
class Marriage:
    spouse_id: str
    date: str = ""
    place: str = ""
    divorced: bool = False
    divorce_date: str = ""
    divorce_place: str = ""


@dataclass
class Person:
    id: str
    name: str = ""
    given_name: str = ""
    surname: str = ""
    gender: str = "unknown"  # male, female, other, unknown
    occupation: str = ""
    notes: str = ""
    birth: EventDetails = field(default_factory=EventDetails)
    death: EventDetails | None = None  # None means living or unknown
    parent_ids: list[str] = field(default_factory=list)
    spouse_ids: list[str] = field(default_factory=list)
    child_ids: list[str] = field(default_factory=list)
    marriages: list[Marriage] = field(default_factory=list)
    avatar_url: str | None = None
    position: Position | None = None  # manual placement, overrides computed layout


@dataclass
class FamilyTreeData:
    version: int
    people: list[Person]


@dataclass
class LayoutNode:
    person: Person
    computed_position: Position
    generation: int

    @property
    def id(self) -> str:
        return self.person.id


def normalize_gender(value: str | None) -> str:
    """Map free-form gender values onto the four supported ones."""
    if not value:
        return "unknown"
    value = value.strip().lower()
    if value in ("m", "male"):
        return "male"
    if value in ("f", "female"):
        return "female"
    if value in GENDERS:
        return value
    return "other"


def create_empty_person(person_id: str) -> Person:
    """A person with no display data and empty relationship sets."""
    return Person(id=person_id)


def full_name(person: Person) -> str:
    if person.name:
        return person.name
    parts = [p for p in [person.given_name, person.surname] if p]
    return " ".join(parts) if parts else "Unknown"
