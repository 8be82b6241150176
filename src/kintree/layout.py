"""Pyramid layout: parents centred above their children, spouses side by side."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from kintree.generations import DEFAULT_MAX_PASSES, assign_generations
from kintree.graph import FamilyGraph
from kintree.models import LayoutNode, Person, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing and canvas constants, all in canvas pixels."""

    horizontal_spacing: float = 180  # between neighbouring units and siblings
    vertical_spacing: float = 180  # between generation rows
    spouse_spacing: float = 100  # between the two people of a couple
    group_gap: float = 60  # extra space between sibling groups in the bottom row
    canvas_padding: float = 100
    node_radius: float = 45
    min_width: float = 800
    min_height: float = 600
    max_passes: int = DEFAULT_MAX_PASSES


@dataclass
class LayoutResult:
    positions: dict[str, Position]
    width: float
    height: float
    generations: dict[str, int] = field(default_factory=dict)
    nodes: list[LayoutNode] = field(default_factory=list)


class _Placement:
    """Working state for one compute_layout call."""

    def __init__(self, people: list[Person], generations: dict[str, int], config: LayoutConfig):
        self.config = config
        self.generations = generations
        self.family = FamilyGraph(people)
        present = set(self.family.people)

        # Layout only follows links between people that are actually present.
        # Children are derived from parent_ids, not trusted from child_ids.
        self.parents_of = {
            pid: [q for q in dict.fromkeys(p.parent_ids) if q in present] for pid, p in self.family.people.items()
        }
        self.children_of: dict[str, list[str]] = {pid: [] for pid in present}
        for pid in self.family.order:
            for parent_id in self.parents_of[pid]:
                if pid not in self.children_of[parent_id]:
                    self.children_of[parent_id].append(pid)
        self.spouses_of = {
            pid: [s for s in self.family.spouses(pid) if s in present and s != pid] for pid in present
        }

        self.placed: dict[str, Position] = {}

    def right_edge(self) -> float:
        if not self.placed:
            return self.config.canvas_padding
        return max(pos.x for pos in self.placed.values()) + self.config.horizontal_spacing

    def place_bottom_row(self, row: list[Person], y: float) -> None:
        """
        Place the deepest generation left to right.

        Full siblings (same parent pair) stay together, people without parents
        form a trailing group, and spouses inside a group sit next to each other.
        """
        config = self.config
        groups: dict[str, list[Person]] = {}
        orphans: list[Person] = []

        for person in row:
            parent_ids = self.parents_of[person.id]
            if not parent_ids:
                orphans.append(person)
            else:
                key = "-".join(sorted(parent_ids))
                groups.setdefault(key, []).append(person)

        all_groups = list(groups.values())
        if orphans:
            all_groups.append(orphans)

        cursor = config.canvas_padding
        for index, group in enumerate(all_groups):
            previous: str | None = None
            for person in self._order_group(group):
                if person.id in self.placed:
                    continue
                if previous is not None and person.id in self.spouses_of[previous]:
                    x = self.placed[previous].x + config.spouse_spacing
                else:
                    x = cursor
                self.placed[person.id] = Position(x, y)
                cursor = x + config.horizontal_spacing
                previous = person.id

            if index < len(all_groups) - 1:
                cursor += config.group_gap

    def _order_group(self, group: list[Person]) -> list[Person]:
        by_name = sorted(group, key=lambda p: p.given_name.casefold())
        ordered: list[Person] = []
        seen: set[str] = set()
        for person in by_name:
            if person.id in seen:
                continue
            ordered.append(person)
            seen.add(person.id)
            for other in by_name:
                if other.id not in seen and other.id in self.spouses_of[person.id]:
                    ordered.append(other)
                    seen.add(other.id)
                    break
        return ordered

    def place_upper_row(self, row: list[Person], generation: int, y: float) -> None:
        """
        Centre each couple, cluster or single above its already placed children.

        Units are then swept left to right and pushed right until each one
        starts at least horizontal_spacing after the previous one ends.
        Childless units go to the running right edge once the rest of the
        row is placed.
        """
        config = self.config
        centred: list[tuple[float, list[str]]] = []
        childless: list[list[str]] = []

        for unit in self._build_units(row, generation):
            child_xs = [
                self.placed[child_id].x
                for member in unit
                for child_id in self.children_of[member]
                if child_id in self.placed
            ]
            if not child_xs:
                childless.append(unit)
                continue
            half_width = (len(unit) - 1) / 2 * config.spouse_spacing
            centred.append(((min(child_xs) + max(child_xs)) / 2 - half_width, unit))

        previous_right: float | None = None
        for left, unit in sorted(centred, key=lambda item: item[0]):
            if previous_right is not None:
                left = max(left, previous_right + config.horizontal_spacing)
            self._place_unit(unit, left, y)
            previous_right = left + (len(unit) - 1) * config.spouse_spacing

        for unit in childless:
            self._place_unit(unit, self.right_edge(), y)

    def _place_unit(self, unit: list[str], left: float, y: float) -> None:
        for index, member in enumerate(unit):
            self.placed[member] = Position(left + index * self.config.spouse_spacing, y)

    def _build_units(self, row: list[Person], generation: int) -> list[list[str]]:
        """
        Split a row into layout units.

        People married more than once come first: the person sits in the middle
        of a cluster with one spouse per marriage, ordered by where that
        marriage's children were placed. Then plain couples, then singles.
        """
        assigned: set[str] = set()
        units: list[list[str]] = []

        def free_partners(pid: str) -> list[str]:
            return [
                s
                for s in self.spouses_of[pid]
                if s not in assigned and self.generations.get(s) == generation
            ]

        for person in row:
            if person.id in assigned:
                continue
            partners = free_partners(person.id)
            if len(partners) > 1:
                unit = self._cluster(person.id, partners)
                units.append(unit)
                assigned.update(unit)

        for person in row:
            if person.id in assigned:
                continue
            partners = free_partners(person.id)
            if len(partners) > 1:
                unit = self._cluster(person.id, partners)
            elif partners:
                unit = [person.id, partners[0]]
            else:
                unit = [person.id]
            units.append(unit)
            assigned.update(unit)

        return units

    def _cluster(self, anchor: str, partners: list[str]) -> list[str]:
        anchor_children = set(self.children_of[anchor])

        def marriage_key(spouse_id: str) -> tuple[int, float, str]:
            shared = [
                self.placed[c].x
                for c in self.children_of[spouse_id]
                if c in anchor_children and c in self.placed
            ]
            if not shared:
                return (1, 0.0, spouse_id)
            return (0, (min(shared) + max(shared)) / 2, spouse_id)

        ordered = sorted(partners, key=marriage_key)
        return [ordered[0], anchor, *ordered[1:]]


def _unique(people: Iterable[Person]) -> list[Person]:
    seen: set[str] = set()
    unique: list[Person] = []
    for p in people:
        if p.id not in seen:
            seen.add(p.id)
            unique.append(p)
    return unique


def compute_layout(
    people: Iterable[Person],
    force_auto_align: bool = False,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """
    Compute canvas coordinates for every person.

    Rows are generations, placed bottom-up so each parent unit can be centred
    over its children. A person's manual position wins over the computed one
    unless force_auto_align is set; the input is never modified.
    """
    config = config or LayoutConfig()
    people = _unique(people)

    if not people:
        return LayoutResult(positions={}, width=config.min_width, height=config.min_height)

    generations = assign_generations(people, config.max_passes)
    rows: dict[int, list[Person]] = {}
    for person in people:
        rows.setdefault(generations[person.id], []).append(person)
    max_generation = max(generations.values())

    placement = _Placement(people, generations, config)
    for generation in range(max_generation, -1, -1):
        row = rows.get(generation, [])
        y = config.canvas_padding + generation * config.vertical_spacing
        if generation == max_generation:
            placement.place_bottom_row(row, y)
        else:
            placement.place_upper_row(row, generation, y)

    positions: dict[str, Position] = {}
    for person in people:
        generation = generations.get(person.id, 0)
        computed = placement.placed.get(person.id)
        if computed is None:
            logger.debug("No computed position for %s, using fallback", person.id)
            computed = Position(config.canvas_padding, config.canvas_padding + generation * config.vertical_spacing)

        if person.position is not None and not force_auto_align:
            positions[person.id] = Position(person.position.x, person.position.y)
        else:
            positions[person.id] = Position(computed.x, computed.y)

    # Shift everything right so nothing sits inside the left padding
    min_x = min(pos.x for pos in positions.values())
    if min_x < config.canvas_padding:
        shift = config.canvas_padding - min_x
        for pos in positions.values():
            pos.x += shift

    max_x = max(pos.x for pos in positions.values())
    max_y = max(pos.y for pos in positions.values())

    nodes = [LayoutNode(person=p, computed_position=positions[p.id], generation=generations[p.id]) for p in people]

    return LayoutResult(
        positions=positions,
        width=max(max_x + config.canvas_padding, config.min_width),
        height=max(max_y + config.canvas_padding, config.min_height),
        generations=generations,
        nodes=nodes,
    )


def compute_auto_align_positions(
    people: Iterable[Person], config: LayoutConfig | None = None
) -> dict[str, Position]:
    """Fresh computed positions for everyone, ignoring manual placements."""
    return compute_layout(people, force_auto_align=True, config=config).positions


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def connection_path(parent_pos: Position, child_pos: Position, node_radius: float = LayoutConfig.node_radius) -> str:
    """SVG path for a parent -> child connector (vertical cubic Bezier)."""
    start_x = parent_pos.x
    start_y = parent_pos.y + node_radius
    end_x = child_pos.x
    end_y = child_pos.y - node_radius
    mid_y = (start_y + end_y) / 2

    return (
        f"M {_fmt(start_x)} {_fmt(start_y)} "
        f"C {_fmt(start_x)} {_fmt(mid_y)}, {_fmt(end_x)} {_fmt(mid_y)}, {_fmt(end_x)} {_fmt(end_y)}"
    )


def spouse_path(pos1: Position, pos2: Position, node_radius: float = LayoutConfig.node_radius) -> str:
    """SVG path for the horizontal line between two spouses."""
    y = pos1.y
    start_x = min(pos1.x, pos2.x) + node_radius
    end_x = max(pos1.x, pos2.x) - node_radius

    return f"M {_fmt(start_x)} {_fmt(y)} L {_fmt(end_x)} {_fmt(y)}"
