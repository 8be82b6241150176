"""Reading and writing the JSON family tree document ``{version, people}``."""

import json
import logging
import random
import string
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from kintree.errors import FamilyTreeFormatError
from kintree.models import EventDetails, FamilyTreeData, Marriage, Person, Position, normalize_gender

logger = logging.getLogger(__name__)

CURRENT_VERSION = 3


def _event(data: Any) -> EventDetails | None:
    if not isinstance(data, dict):
        return None
    return EventDetails(date=data.get("date") or "", place=data.get("place") or "")


def _marriage(data: dict[str, Any]) -> Marriage:
    return Marriage(
        spouse_id=data.get("spouseId") or "",
        date=data.get("date") or "",
        place=data.get("place") or "",
        divorced=bool(data.get("divorced", False)),
        divorce_date=data.get("divorceDate") or "",
        divorce_place=data.get("divorcePlace") or "",
    )


def _position(data: Any) -> Position | None:
    if not isinstance(data, dict):
        return None
    try:
        return Position(x=float(data["x"]), y=float(data["y"]))
    except (KeyError, TypeError, ValueError):
        return None


def person_from_dict(data: dict[str, Any]) -> Person:
    """Build a Person from its camelCase JSON form, filling defaults for older documents."""
    return Person(
        id=data["id"],
        name=data.get("name") or "",
        given_name=data.get("givenName") or "",
        surname=data.get("surname") or "",
        gender=normalize_gender(data.get("gender")),
        occupation=data.get("occupation") or "",
        notes=data.get("notes") or "",
        birth=_event(data.get("birth")) or EventDetails(),
        death=_event(data.get("death")),
        parent_ids=list(data["parentIds"]),
        spouse_ids=list(data["spouseIds"]),
        child_ids=list(data.get("childIds") or []),
        marriages=[_marriage(m) for m in data.get("marriages") or [] if isinstance(m, dict)],
        avatar_url=data.get("avatarUrl") or None,
        position=_position(data.get("position")),
    )


def person_to_dict(person: Person) -> dict[str, Any]:
    return {
        "id": person.id,
        "name": person.name,
        "givenName": person.given_name,
        "surname": person.surname,
        "gender": person.gender,
        "occupation": person.occupation,
        "notes": person.notes,
        "birth": {"date": person.birth.date, "place": person.birth.place}
        if person.birth
        else {"date": "", "place": ""},
        "death": {"date": person.death.date, "place": person.death.place} if person.death else None,
        "parentIds": list(person.parent_ids),
        "spouseIds": list(person.spouse_ids),
        "childIds": list(person.child_ids),
        "marriages": [
            {
                "spouseId": m.spouse_id,
                "date": m.date,
                "place": m.place,
                "divorced": m.divorced,
                "divorceDate": m.divorce_date,
                "divorcePlace": m.divorce_place,
            }
            for m in person.marriages
        ],
        "avatarUrl": person.avatar_url,
        "position": {"x": person.position.x, "y": person.position.y} if person.position else None,
    }


def load_family_tree(data: Any) -> FamilyTreeData:
    """
    Validate a decoded JSON document and migrate it to the current person shape.

    Raises FamilyTreeFormatError naming the first problem found.
    """
    if not isinstance(data, dict):
        raise FamilyTreeFormatError("Invalid JSON structure")

    version = data.get("version")
    if not isinstance(version, (int, float)) or isinstance(version, bool):
        raise FamilyTreeFormatError("Missing or invalid version field")

    raw_people = data.get("people")
    if not isinstance(raw_people, list):
        raise FamilyTreeFormatError("Missing or invalid people array")

    people: list[Person] = []
    for i, raw in enumerate(raw_people):
        if not isinstance(raw, dict):
            raise FamilyTreeFormatError(f"Invalid person at index {i}")
        if not isinstance(raw.get("id"), str):
            raise FamilyTreeFormatError(f"Missing or invalid id for person at index {i}")
        if not isinstance(raw.get("parentIds"), list):
            raise FamilyTreeFormatError(f"Missing or invalid parentIds for person at index {i}")
        if not isinstance(raw.get("spouseIds"), list):
            raise FamilyTreeFormatError(f"Missing or invalid spouseIds for person at index {i}")
        people.append(person_from_dict(raw))

    if version < CURRENT_VERSION:
        logger.info("Migrated family tree document from version %s to %s", version, CURRENT_VERSION)
    return FamilyTreeData(version=version, people=people)


def dump_family_tree(people: Iterable[Person]) -> dict[str, Any]:
    return {"version": CURRENT_VERSION, "people": [person_to_dict(p) for p in people]}


def read_family_tree(path: Path) -> FamilyTreeData:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FamilyTreeFormatError(f"{path} is not valid JSON: {e}") from e
    return load_family_tree(data)


def write_family_tree(path: Path, people: Iterable[Person]) -> None:
    Path(path).write_text(json.dumps(dump_family_tree(people), indent=2, ensure_ascii=False), encoding="utf-8")


def generate_id() -> str:
    """Unique person id of the form person_<epoch millis>_<9 random chars>."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"person_{int(time.time() * 1000)}_{suffix}"
