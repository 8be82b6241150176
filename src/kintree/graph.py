"""NetworkX graph building and neighbour lookups over a person snapshot."""

import itertools
import logging
from collections.abc import Iterable

import networkx as nx

from kintree.models import Person, full_name

logger = logging.getLogger(__name__)

PARENT_OF = "PARENT_OF"
SPOUSE_OF = "SPOUSE_OF"


def build_graph(people: Iterable[Person]) -> nx.MultiDiGraph:
    """
    Build a NetworkX multigraph from a person snapshot.

    Edges are keyed by relationship type so that a malformed snapshot in which
    two people are both spouses and parent/child keeps both edges:
    - PARENT_OF runs parent -> child, taken from parent_ids and child_ids
    - SPOUSE_OF is stored in both directions

    References to people that are not in the snapshot are skipped.
    """
    people = list(people)
    G = nx.MultiDiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for p in people:
        if p.id in G:
            continue
        G.add_node(
            p.id,
            person_name=full_name(p),
            given_name=p.given_name,
            surname=p.surname,
            gender=p.gender,
            birth_date=p.birth.date if p.birth else "",
            death_date=p.death.date if p.death else "",
        )

    skipped = 0
    for p in people:
        for parent_id in p.parent_ids:
            if parent_id in G:
                G.add_edge(parent_id, p.id, key=PARENT_OF)
            else:
                skipped += 1
        for child_id in p.child_ids:
            if child_id in G:
                G.add_edge(p.id, child_id, key=PARENT_OF)
            else:
                skipped += 1
        for spouse_id in p.spouse_ids:
            if spouse_id in G:
                G.add_edge(p.id, spouse_id, key=SPOUSE_OF)
                G.add_edge(spouse_id, p.id, key=SPOUSE_OF)
            else:
                skipped += 1

    if skipped:
        logger.debug("Skipped %d references to people outside the snapshot", skipped)
    return G


def build_parent_graph(people: Iterable[Person]) -> nx.DiGraph:
    """
    Build a parent -> child graph from parent_ids alone.

    Every listed person is a node. A dangling parent id still becomes a node,
    but since it has no record of its own it has no parents to walk further.
    """
    P = nx.DiGraph()
    people = list(people)
    P.add_nodes_from(p.id for p in people)
    for p in people:
        for parent_id in p.parent_ids:
            P.add_edge(parent_id, p.id)
    return P


class FamilyGraph:
    """
    Ordered parent/child/spouse lookups over a snapshot.

    Each accessor returns what the person declares first, in declared order,
    followed by links only the other side declares. Declared ids are returned
    even when they dangle so that traversals see the same neighbours the data
    names; callers resolve them with get().
    """

    def __init__(self, people: Iterable[Person]):
        self.order: list[str] = []
        self.people: dict[str, Person] = {}
        for p in people:
            # First record wins for duplicated ids
            if p.id not in self.people:
                self.people[p.id] = p
                self.order.append(p.id)
        self.G = build_graph(self.people.values())

    def __contains__(self, person_id: str) -> bool:
        return person_id in self.people

    def get(self, person_id: str) -> Person | None:
        return self.people.get(person_id)

    def _merge(self, declared: list[str], derived: Iterable[str]) -> list[str]:
        merged = list(dict.fromkeys(declared))
        seen = set(merged)
        for other in derived:
            if other not in seen:
                seen.add(other)
                merged.append(other)
        return merged

    def parents(self, person_id: str) -> list[str]:
        person = self.people.get(person_id)
        if person is None:
            return []
        derived = (u for u in self.G.predecessors(person_id) if self.G.has_edge(u, person_id, PARENT_OF))
        return self._merge(person.parent_ids, derived)

    def children(self, person_id: str) -> list[str]:
        person = self.people.get(person_id)
        if person is None:
            return []
        derived = (v for v in self.G.successors(person_id) if self.G.has_edge(person_id, v, PARENT_OF))
        return self._merge(person.child_ids, derived)

    def spouses(self, person_id: str) -> list[str]:
        person = self.people.get(person_id)
        if person is None:
            return []
        derived = (v for v in self.G.successors(person_id) if self.G.has_edge(person_id, v, SPOUSE_OF))
        return self._merge(person.spouse_ids, derived)

    def siblings(self, person_id: str) -> list[str]:
        """People other than person_id sharing at least one parent, in snapshot order."""
        own_parents = set(self.parents(person_id))
        if not own_parents:
            return []
        return [
            other
            for other in self.order
            if other != person_id and own_parents.intersection(self.parents(other))
        ]

    def gender(self, person_id: str) -> str:
        person = self.people.get(person_id)
        return person.gender if person else "unknown"


def build_union_layout_graph(G: nx.MultiDiGraph) -> nx.DiGraph:
    """
    Put a family point between parents and their children for DOT export.

    Every married couple gets a point named ``FAM_<a>_<b>`` (ids sorted), even
    without children. A child hangs from its parents' couple point when two of
    its parents are married, otherwise from a point named after all of its
    parents. Person nodes keep their attributes plus ``node_type="person"``.
    """
    H = nx.DiGraph()
    H.add_nodes_from((n, {**data, "node_type": "person"}) for n, data in G.nodes(data=True))

    def family_point(members: tuple[str, ...]) -> str:
        fam_id = "FAM_" + "_".join(members)
        if fam_id not in H:
            H.add_node(fam_id, node_type="family", spouses=members)
            for member in members:
                H.add_edge(member, fam_id, edge_type="spouse_to_family")
        return fam_id

    couples = {tuple(sorted((u, v))) for u, v, key in G.edges(keys=True) if key == SPOUSE_OF}
    for couple in sorted(couples):
        family_point(couple)

    for child in G.nodes:
        parents = sorted({u for u, _, key in G.in_edges(child, keys=True) if key == PARENT_OF})
        if not parents:
            continue
        married = [pair for pair in itertools.combinations(parents, 2) if pair in couples]
        fam_id = family_point(married[0] if married else tuple(parents))
        H.add_edge(fam_id, child, edge_type="family_to_child")

    return H
