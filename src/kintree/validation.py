"""Whole-tree consistency checks for family tree snapshots."""

from collections.abc import Sequence

import networkx as nx

from kintree.graph import build_parent_graph
from kintree.models import Person, full_name
from kintree.parsing import parse_date_string


def find_parent_cycle(people: Sequence[Person]) -> list[str] | None:
    """Return the ids along one parent -> child cycle, or None if there is none."""
    try:
        cycle = nx.find_cycle(build_parent_graph(people), orientation="original")
    except nx.NetworkXNoCycle:
        return None
    return [edge[0] for edge in cycle]


def is_valid_tree(people: Sequence[Person]) -> bool:
    return find_parent_cycle(people) is None


def validate_tree(people: Sequence[Person]) -> list[str]:
    """
    Validate a snapshot for:
    - Cycles in parent-child relationships
    - References to people that are not in the snapshot
    - One-sided spouse and parent/child links
    - Impossible ages (child born before parent, parent under 12)
    - Death before birth

    Returns a list of warning messages; an empty list means no issues.
    """
    warnings: list[str] = []
    by_id = {p.id: p for p in people}

    cycle = find_parent_cycle(people)
    if cycle:
        warnings.append(f"Cycle detected in parent-child relationships: {cycle}")

    for person in people:
        name = full_name(person)
        for field_name, ids in (
            ("parent", person.parent_ids),
            ("spouse", person.spouse_ids),
            ("child", person.child_ids),
        ):
            for other_id in ids:
                if other_id not in by_id:
                    warnings.append(f"Missing {field_name} {other_id} referenced by {name}")

        for spouse_id in person.spouse_ids:
            spouse = by_id.get(spouse_id)
            if spouse and person.id not in spouse.spouse_ids:
                warnings.append(f"One-sided marriage: {name} lists {full_name(spouse)} as spouse but not back")

        for parent_id in person.parent_ids:
            parent = by_id.get(parent_id)
            if parent and person.id not in parent.child_ids:
                warnings.append(f"One-sided parentage: {full_name(parent)} does not list child {name}")

        for child_id in person.child_ids:
            child = by_id.get(child_id)
            if child and person.id not in child.parent_ids:
                warnings.append(f"One-sided parentage: {full_name(child)} does not list parent {name}")

    # birth dates are normalised to ISO format (YYYY-MM-DD) which can be compared as strings
    for person in people:
        child_birth = parse_date_string(person.birth.date if person.birth else None)
        for parent_id in person.parent_ids:
            parent = by_id.get(parent_id)
            if parent is None:
                continue
            parent_birth = parse_date_string(parent.birth.date if parent.birth else None)
            if not (parent_birth and child_birth):
                continue

            if child_birth < parent_birth:
                warnings.append(f"Impossible: {full_name(person)} born before parent {full_name(parent)}")
            elif int(child_birth[:4]) - int(parent_birth[:4]) < 12:
                warnings.append(
                    f"Suspicious: {full_name(parent)} was less than 12 years "
                    f"old when {full_name(person)} was born"
                )

    for person in people:
        birth = parse_date_string(person.birth.date if person.birth else None)
        death = parse_date_string(person.death.date if person.death else None)

        if birth and death and death < birth:
            warnings.append(f"Impossible: {full_name(person)} died before being born")

    return warnings
