"""Generation (row depth) assignment for the tree layout."""

import logging
from collections.abc import Iterable

from kintree.graph import build_parent_graph
from kintree.models import Person

logger = logging.getLogger(__name__)

# Convergence takes one pass per generation on acyclic input; the cap only
# stops runaway raising on cyclic data that got past the cycle guard.
DEFAULT_MAX_PASSES = 100


def assign_generations(people: Iterable[Person], max_passes: int = DEFAULT_MAX_PASSES) -> dict[str, int]:
    """
    Assign every person a generation number.

    - People with no parents in the snapshot start at generation 0
    - A child sits one below its lowest-placed parent
    - Spouses share the deeper of their two generations
    Both rules only ever raise a value, so the result does not depend on the
    order in which people are visited. Anyone never reached defaults to 0.
    """
    people = list(people)
    ids = list(dict.fromkeys(p.id for p in people))
    present = set(ids)

    P = build_parent_graph(people)
    parents_of = {pid: [q for q in P.predecessors(pid) if q in present] for pid in ids}

    spouse_pairs = sorted(
        {
            tuple(sorted((p.id, spouse_id)))
            for p in people
            for spouse_id in p.spouse_ids
            if spouse_id in present and spouse_id != p.id
        }
    )

    generations = {pid: 0 for pid in ids if not parents_of[pid]}

    passes = 0
    for passes in range(1, max_passes + 1):
        changed = False

        for pid in ids:
            assigned = [generations[q] for q in parents_of[pid] if q in generations]
            if not assigned:
                continue
            candidate = max(assigned) + 1
            if generations.get(pid, -1) < candidate:
                generations[pid] = candidate
                changed = True

        for a, b in spouse_pairs:
            if a not in generations and b not in generations:
                continue
            target = max(generations.get(a, 0), generations.get(b, 0))
            for pid in (a, b):
                if generations.get(pid, -1) < target:
                    generations[pid] = target
                    changed = True

        if not changed:
            break
    else:
        if max_passes:
            logger.warning(
                "Generation assignment still changing after %d passes; the tree may contain a cycle",
                max_passes,
            )

    unreached = 0
    for pid in ids:
        if pid not in generations:
            generations[pid] = 0
            unreached += 1

    logger.debug("Assigned %d generations in %d passes (%d unreached)", len(ids), passes, unreached)
    return generations
