"""Family tree layout and relationship inference."""

from kintree.cycles import would_create_cycle
from kintree.editing import (
    add_child,
    add_parent,
    add_person,
    add_spouse,
    remove_person,
    remove_relationship,
    update_person,
)
from kintree.generations import assign_generations
from kintree.layout import LayoutConfig, LayoutResult, compute_auto_align_positions, compute_layout
from kintree.models import EventDetails, Marriage, Person, Position
from kintree.relationships import RelationshipResult, find_relationship

__all__ = [
    "EventDetails",
    "LayoutConfig",
    "LayoutResult",
    "Marriage",
    "Person",
    "Position",
    "RelationshipResult",
    "add_child",
    "add_parent",
    "add_person",
    "add_spouse",
    "assign_generations",
    "compute_auto_align_positions",
    "compute_layout",
    "find_relationship",
    "remove_person",
    "remove_relationship",
    "update_person",
    "would_create_cycle",
]
