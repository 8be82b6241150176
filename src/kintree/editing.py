"""
Copy-on-write edits that keep relationship links symmetric.

Every operation takes a snapshot and returns a new one; the input list and
the Person objects in it are never modified. New parent links are checked
with the cycle guard before they are committed.
"""

import copy
import logging
from collections.abc import Iterable

from kintree.cycles import would_create_cycle
from kintree.errors import KinTreeError, PersonNotFoundError, StructuralConflictError
from kintree.models import Marriage, Person

logger = logging.getLogger(__name__)


def _copy(people: Iterable[Person]) -> tuple[list[Person], dict[str, Person]]:
    new_people = copy.deepcopy(list(people))
    return new_people, {p.id: p for p in new_people}


def _require(by_id: dict[str, Person], person_id: str) -> Person:
    try:
        return by_id[person_id]
    except KeyError:
        raise PersonNotFoundError(person_id) from None


def _append(ids: list[str], value: str) -> None:
    if value not in ids:
        ids.append(value)


def _discard(ids: list[str], value: str) -> None:
    while value in ids:
        ids.remove(value)


def _check_parent(people: list[Person], child_id: str, parent_id: str) -> None:
    if would_create_cycle(people, child_id, parent_id):
        raise StructuralConflictError(child_id, parent_id)


def _link_back(by_id: dict[str, Person], person: Person) -> None:
    """Add the inverse of every link person declares onto the other side."""
    for spouse_id in person.spouse_ids:
        if spouse_id in by_id:
            _append(by_id[spouse_id].spouse_ids, person.id)
    for parent_id in person.parent_ids:
        if parent_id in by_id:
            _append(by_id[parent_id].child_ids, person.id)
    for child_id in person.child_ids:
        if child_id in by_id:
            _append(by_id[child_id].parent_ids, person.id)


def add_person(people: Iterable[Person], person: Person) -> list[Person]:
    """Add a new person and mirror the links it declares onto its relatives."""
    new_people, by_id = _copy(people)
    if person.id in by_id:
        raise KinTreeError(f"Person ID {person.id} already exists")

    if person.id in person.parent_ids or person.id in person.child_ids:
        raise StructuralConflictError(person.id, person.id)
    # parent -> new person -> child closes a loop if the child is already above the parent
    for parent_id in person.parent_ids:
        for child_id in person.child_ids:
            if would_create_cycle(new_people, child_id, parent_id):
                raise StructuralConflictError(person.id, parent_id)

    person = copy.deepcopy(person)
    new_people.append(person)
    by_id[person.id] = person
    _link_back(by_id, person)
    return new_people


def update_person(people: Iterable[Person], updated: Person) -> list[Person]:
    """
    Replace a person's record and re-derive the inverse links.

    Links the old record had and the new one dropped are removed from the other
    side as well. New parents are checked for cycles first.
    """
    new_people, by_id = _copy(people)
    old = _require(by_id, updated.id)

    for parent_id in updated.parent_ids:
        if parent_id not in old.parent_ids:
            _check_parent(new_people, updated.id, parent_id)
    for child_id in updated.child_ids:
        if child_id not in old.child_ids:
            _check_parent(new_people, child_id, updated.id)

    for spouse_id in set(old.spouse_ids) - set(updated.spouse_ids):
        if spouse_id in by_id:
            _discard(by_id[spouse_id].spouse_ids, old.id)
    for parent_id in set(old.parent_ids) - set(updated.parent_ids):
        if parent_id in by_id:
            _discard(by_id[parent_id].child_ids, old.id)
    for child_id in set(old.child_ids) - set(updated.child_ids):
        if child_id in by_id:
            _discard(by_id[child_id].parent_ids, old.id)

    updated = copy.deepcopy(updated)
    new_people = [updated if p is old else p for p in new_people]
    by_id[updated.id] = updated
    _link_back(by_id, updated)
    return new_people


def add_parent(people: Iterable[Person], child_id: str, parent_id: str) -> list[Person]:
    """Make parent_id a parent of child_id; raises StructuralConflictError on a cycle."""
    new_people, by_id = _copy(people)
    child = _require(by_id, child_id)
    parent = _require(by_id, parent_id)
    _check_parent(new_people, child_id, parent_id)

    _append(child.parent_ids, parent_id)
    _append(parent.child_ids, child_id)
    return new_people


def add_child(people: Iterable[Person], parent_id: str, child_id: str) -> list[Person]:
    return add_parent(people, child_id, parent_id)


def add_spouse(
    people: Iterable[Person],
    person_id: str,
    spouse_id: str,
    marriage: Marriage | None = None,
) -> list[Person]:
    """Marry two people, recording the marriage details on both sides."""
    if person_id == spouse_id:
        raise KinTreeError("A person cannot be their own spouse")

    new_people, by_id = _copy(people)
    person = _require(by_id, person_id)
    spouse = _require(by_id, spouse_id)

    marriage = marriage or Marriage(spouse_id=spouse_id)
    for a, b in ((person, spouse), (spouse, person)):
        _append(a.spouse_ids, b.id)
        if not any(m.spouse_id == b.id for m in a.marriages):
            a.marriages.append(
                Marriage(
                    spouse_id=b.id,
                    date=marriage.date,
                    place=marriage.place,
                    divorced=marriage.divorced,
                    divorce_date=marriage.divorce_date,
                    divorce_place=marriage.divorce_place,
                )
            )
    return new_people


def remove_relationship(people: Iterable[Person], person_id: str, other_id: str) -> list[Person]:
    """Drop every parent, child and spouse link between two people."""
    new_people, by_id = _copy(people)
    person = _require(by_id, person_id)
    other = _require(by_id, other_id)

    for a, b in ((person, other), (other, person)):
        _discard(a.parent_ids, b.id)
        _discard(a.child_ids, b.id)
        _discard(a.spouse_ids, b.id)
        a.marriages = [m for m in a.marriages if m.spouse_id != b.id]
    return new_people


def remove_person(people: Iterable[Person], person_id: str) -> list[Person]:
    """Remove a person and every reference to their id."""
    new_people, by_id = _copy(people)
    _require(by_id, person_id)

    remaining = [p for p in new_people if p.id != person_id]
    for p in remaining:
        _discard(p.parent_ids, person_id)
        _discard(p.child_ids, person_id)
        _discard(p.spouse_ids, person_id)
        p.marriages = [m for m in p.marriages if m.spouse_id != person_id]

    logger.debug("Removed %s from %d remaining people", person_id, len(remaining))
    return remaining
