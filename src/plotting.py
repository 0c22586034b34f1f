"""Visualization functions for family tree graphs."""

from pathlib import Path

import matplotlib.pyplot as plt
import networkx as nx
import pydot

from graph import build_graph, build_union_layout_graph
from logs import get_logger
from models import Gender, leading_year, person_node_size
from store import TreeStore

logger = get_logger(__name__)

GENDER_COLORS = {
    Gender.MALE.value: "lightblue",
    Gender.FEMALE.value: "lightpink",
    Gender.UNKNOWN.value: "lightgray",
}


def _person_label(data: dict) -> str:
    birth_year = leading_year(data.get("birth"))
    death_year = leading_year(data.get("death"))
    years = f"{birth_year or ''}-{death_year or ''}"
    if years == "-":
        return data.get("person_name") or "Unknown"
    return f"{data.get('person_name') or 'Unknown'}\n{years}"


def build_dot(store: TreeStore) -> pydot.Dot:
    """Graphviz graph of the tree: ancestors on top, each couple held on one rank."""
    H = build_union_layout_graph(build_graph(store))

    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "TB")  # Top-to-bottom (ancestors at top)
    P.set("splines", "ortho")  # Orthogonal edges for cleaner tree look
    P.set("nodesep", "0.4")
    P.set("ranksep", "0.6")

    spouse_pairs: list[tuple] = []

    for node, data in H.nodes(data=True):
        if data.get("node_type") == "family":
            P.add_node(pydot.Node(str(node), shape="point", width="0.1", height="0.1", label=""))
            spouses = data.get("spouses", ())
            if len(spouses) == 2:
                spouse_pairs.append(spouses)
        else:
            P.add_node(
                pydot.Node(
                    str(node),
                    label=_person_label(data),
                    shape="box",
                    style="rounded,filled",
                    fillcolor=GENDER_COLORS.get(data.get("gender"), "lightgray"),
                    fontsize="10",
                )
            )

    for u, v, data in H.edges(data=True):
        if data.get("edge_type") == "spouse_to_family":
            P.add_edge(pydot.Edge(str(u), str(v), dir="none", color="darkgray"))
        elif data.get("edge_type") == "family_to_child":
            P.add_edge(pydot.Edge(str(u), str(v), color="darkgray"))

    for i, (a, b) in enumerate(spouse_pairs):
        sg = pydot.Subgraph(f"couple_{i}", rank="same")
        sg.add_node(pydot.Node(str(a)))
        sg.add_node(pydot.Node(str(b)))
        P.add_subgraph(sg)

    return P


def write_graph(store: TreeStore, output_path: Path):
    """Write DOT source for .dot/.gv files; png/svg/pdf need the Graphviz binaries."""
    P = build_dot(store)
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("dot", "gv"):
        output_path.write_text(P.to_string(), encoding="utf-8")
    else:
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        P.write(str(output_path), format=ext)
    logger.info("graph_written", path=str(output_path))


def plot_layout(store: TreeStore, output_path: Path | None = None):
    """
    Draw the tree at the positions stored on each person, the way the canvas shows it.

    Args:
        store: The tree to draw
        output_path: Path to save the image. If None, displays interactively.
    """
    G = build_graph(store)

    # Canvas positions are node top-left corners with y growing downward
    pos = {}
    for pid, person in store.persons.items():
        width, height = person_node_size(person.name)
        pos[pid] = (person.position[0] + width / 2, -(person.position[1] + height / 2))

    parent_edges = [(u, v) for u, v, d in G.edges(data=True) if d["relationship_type"] == "PARENT_OF"]
    spouse_edges = [(u, v) for u, v, d in G.edges(data=True) if d["relationship_type"] == "SPOUSE_OF"]
    node_colors = [GENDER_COLORS.get(G.nodes[n]["gender"], "lightgray") for n in G.nodes()]
    # Outline each person in the color of their first family
    outlines = []
    for n in G.nodes():
        families = store.families_of(n)
        outlines.append(tuple(c / 255 for c in families[0].color) if families else "white")

    fig = plt.figure(figsize=(20, 16))
    nx.draw_networkx_nodes(
        G, pos, node_color=node_colors, edgecolors=outlines, linewidths=2, node_shape="s", node_size=600
    )
    nx.draw_networkx_labels(G, pos, labels={n: G.nodes[n]["person_name"] for n in G.nodes()}, font_size=8)
    nx.draw_networkx_edges(G, pos, edgelist=parent_edges, edge_color="gray", arrows=True, width=0.8)
    nx.draw_networkx_edges(
        G, pos, edgelist=spouse_edges, edge_color="darkgray", style="dashed", arrows=False, width=0.8
    )

    plt.title(f"Family Tree ({len(store.persons)} people, {len(store.edges)} parent-child edges)")
    plt.axis("off")
    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info("plot_saved", path=str(output_path))
    else:
        plt.show()
