"""Guard against parent assignments that would make someone their own ancestor."""

import logging
from collections.abc import Sequence

import networkx as nx

from kintree.graph import build_parent_graph
from kintree.models import Person

logger = logging.getLogger(__name__)


def would_create_cycle(people: Sequence[Person], child_id: str, candidate_parent_id: str) -> bool:
    """
    Return True if making candidate_parent_id a parent of child_id would create a cycle.

    That is the case when the two ids are equal, when the candidate is already a
    descendant of the child, or when the child is already an ancestor of the
    candidate. Dangling ids are simply not expanded.
    """
    if child_id == candidate_parent_id:
        return True

    P = build_parent_graph(people)

    # Descendants of child, walking the children map breadth-first
    if child_id in P and candidate_parent_id in nx.descendants(P, child_id):
        logger.debug("%s is a descendant of %s", candidate_parent_id, child_id)
        return True

    # Ancestors of the candidate, walking parent_ids upwards
    if candidate_parent_id in P and child_id in nx.ancestors(P, candidate_parent_id):
        logger.debug("%s is an ancestor of %s", child_id, candidate_parent_id)
        return True

    return False
