"""Visualization of computed layouts."""

import logging
from collections.abc import Sequence
from pathlib import Path

import networkx as nx
import pydot

from kintree.graph import PARENT_OF, SPOUSE_OF, build_graph, build_union_layout_graph
from kintree.layout import LayoutResult
from kintree.models import Person

logger = logging.getLogger(__name__)

GENDER_COLORS = {"male": "lightblue", "female": "lightpink"}
DEFAULT_COLOR = "lightgray"
HIGHLIGHT_COLOR = "darkorange"


def _label(data: dict) -> str:
    given_name = data.get("given_name") or ""
    surname = data.get("surname") or ""
    if not (given_name or surname):
        given_name = data.get("person_name", "")

    birth_year = (data.get("birth_date") or "")[:4]
    death_year = (data.get("death_date") or "")[:4]
    label = "\n".join(part for part in [given_name, surname] if part)
    if birth_year or death_year:
        label += f"\n{birth_year}-{death_year}"
    return label


def plot_layout(
    people: Sequence[Person],
    layout: LayoutResult,
    output_path: Path | None = None,
    highlight: Sequence[str] | None = None,
):
    """
    Draw people at their computed coordinates.

    Parent -> child edges are drawn as arrows and spouses as dashed lines.
    When highlight holds a relationship path, its nodes and edges are drawn
    in a contrasting colour.

    Args:
        people: The snapshot the layout was computed from
        layout: Result of compute_layout
        output_path: Path to save the output image (PNG). If None, displays interactively.
        highlight: Ordered person ids to emphasise
    """
    import matplotlib.pyplot as plt

    M = build_graph(people)
    G = nx.DiGraph(M)
    highlight = list(highlight or [])
    path_nodes = set(highlight)
    path_edges = {frozenset(pair) for pair in zip(highlight, highlight[1:])}

    # Canvas y grows downwards, matplotlib's upwards
    pos = {n: (p.x, layout.height - p.y) for n, p in layout.positions.items() if n in G}

    node_colors = []
    for node in G.nodes():
        if node in path_nodes:
            node_colors.append(HIGHLIGHT_COLOR)
        else:
            node_colors.append(GENDER_COLORS.get(G.nodes[node].get("gender"), DEFAULT_COLOR))

    parent_edges = [(u, v) for u, v, key in M.edges(keys=True) if key == PARENT_OF]
    spouse_edges = sorted({tuple(sorted((u, v))) for u, v, key in M.edges(keys=True) if key == SPOUSE_OF})

    plt.figure(figsize=(max(layout.width / 100, 8), max(layout.height / 100, 6)))
    nx.draw_networkx_nodes(G, pos, node_color=node_colors, node_size=900)
    nx.draw_networkx_labels(G, pos, labels={n: _label(d) for n, d in G.nodes(data=True)}, font_size=6)
    nx.draw_networkx_edges(
        G,
        pos,
        edgelist=parent_edges,
        edge_color=[HIGHLIGHT_COLOR if frozenset(e) in path_edges else "gray" for e in parent_edges],
        arrows=True,
        width=0.8,
    )
    nx.draw_networkx_edges(
        G,
        pos,
        edgelist=spouse_edges,
        edge_color=[HIGHLIGHT_COLOR if frozenset(e) in path_edges else "darkgray" for e in spouse_edges],
        style="dashed",
        arrows=False,
        width=0.8,
    )

    plt.title(f"Family Tree ({G.number_of_nodes()} people)")
    plt.axis("off")
    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close()
        print(f"Graph saved to {output_path}")
    else:
        plt.show()


def build_dot(people: Sequence[Person], layout: LayoutResult) -> pydot.Dot:
    """
    Build a Graphviz graph with every person pinned at its computed position.

    Uses the union-node model: spouses connect to a small family point, and
    children hang from that point. Family points sit between their members.
    """
    H = build_union_layout_graph(build_graph(people))

    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "ortho")
    P.set("outputorder", "edgesfirst")

    def pinned(x: float, y: float) -> str:
        return f"{x:.1f},{layout.height - y:.1f}!"

    for node, data in H.nodes(data=True):
        if data.get("node_type") == "family":
            members = [layout.positions[m] for m in data.get("spouses", ()) if m in layout.positions]
            attrs = {"shape": "point", "width": "0.1", "height": "0.1", "label": ""}
            if members:
                x = sum(p.x for p in members) / len(members)
                y = sum(p.y for p in members) / len(members)
                attrs["pos"] = pinned(x, y)
            P.add_node(pydot.Node(str(node), **attrs))
            continue

        attrs = {
            "label": _label(data),
            "shape": "box",
            "style": "rounded,filled",
            "fillcolor": GENDER_COLORS.get(data.get("gender"), DEFAULT_COLOR),
            "fontsize": "10",
        }
        position = layout.positions.get(node)
        if position is not None:
            attrs["pos"] = pinned(position.x, position.y)
        P.add_node(pydot.Node(str(node), **attrs))

    for u, v, data in H.edges(data=True):
        if data.get("edge_type") == "spouse_to_family":
            P.add_edge(pydot.Edge(str(u), str(v), dir="none", color="darkgray"))
        else:
            P.add_edge(pydot.Edge(str(u), str(v), color="darkgray"))

    return P


def write_dot(people: Sequence[Person], layout: LayoutResult, output_path: Path) -> None:
    """Write the pinned graph; render it with `neato -n2` to keep the positions."""
    P = build_dot(people, layout)
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("png", "svg", "pdf"):
        P.write(str(output_path), prog=["neato", "-n2"], format=ext)
    else:
        P.write_raw(str(output_path))
    logger.info("Wrote %s", output_path)
