"""Graph-level descriptive statistics over a NetworkX graph.

Directed graphs are handled as follows: density and reciprocity use the
directed edge set, transitivity and cliques use the undirected simple view,
distances follow edge direction.
"""

from __future__ import annotations

import math
from typing import Any, Hashable, Optional

import networkx as nx


def simple_undirected(graph: nx.Graph) -> nx.Graph:
    """Return an undirected copy without self-loops or parallel edges."""
    view = nx.Graph(graph)
    view.remove_edges_from(list(nx.selfloop_edges(view)))
    return view


def is_weighted(graph: nx.Graph, weight: str = "weight") -> bool:
    return any(weight in data for _u, _v, data in graph.edges(data=True))


def edge_density(graph: nx.Graph) -> float:
    return nx.density(graph)


def reciprocity(graph: nx.Graph) -> float:
    """Share of directed edges whose reverse edge also exists.

    Undirected graphs are fully reciprocal by definition; a graph without
    edges has reciprocity 0.
    """
    if not graph.is_directed():
        return 1.0
    if graph.number_of_edges() == 0:
        return 0.0
    return float(nx.reciprocity(graph))


def global_transitivity(graph: nx.Graph) -> float:
    """Ratio of closed triplets to all connected triplets."""
    return float(nx.transitivity(simple_undirected(graph)))


def connected_components(graph: nx.Graph, strong: bool = False) -> list[set[Hashable]]:
    if graph.is_directed():
        if strong:
            return list(nx.strongly_connected_components(graph))
        return list(nx.weakly_connected_components(graph))
    return list(nx.connected_components(graph))


def component_count(graph: nx.Graph, strong: bool = False) -> int:
    return len(connected_components(graph, strong=strong))


def largest_component_nodes(graph: nx.Graph) -> set[Hashable]:
    """Node set of the largest (weakly) connected component."""
    components = connected_components(graph)
    if not components:
        return set()
    # Ties go to the component whose first node was inserted earliest
    order = {n: i for i, n in enumerate(graph.nodes)}
    return max(components, key=lambda c: (len(c), -min(order[n] for n in c)))


def _path_lengths(graph: nx.Graph) -> list[int]:
    lengths: list[int] = []
    for source, targets in nx.all_pairs_shortest_path_length(graph):
        lengths.extend(d for target, d in targets.items() if target != source)
    return lengths


def mean_distance(graph: nx.Graph) -> Optional[float]:
    """Average shortest-path length over all reachable ordered pairs.

    Unreachable pairs are ignored. Returns None when no pair is reachable.
    """
    lengths = _path_lengths(graph)
    if not lengths:
        return None
    return sum(lengths) / len(lengths)


def diameter(graph: nx.Graph) -> int:
    """Longest finite shortest path; 0 for a graph without edges."""
    lengths = _path_lengths(graph)
    return max(lengths) if lengths else 0


def oriented_view(graph: nx.Graph, mode: str) -> nx.Graph:
    """Return the view whose out-edges follow *mode* ('out', 'in' or 'all')."""
    if mode not in ("all", "in", "out"):
        raise ValueError(f"Unknown mode '{mode}'. Expected 'all', 'in' or 'out'.")
    if not graph.is_directed() or mode == "out":
        return graph
    if mode == "in":
        return graph.reverse(copy=False)
    return graph.to_undirected(as_view=True)


def degrees(graph: nx.Graph, mode: str = "all") -> dict[Hashable, int]:
    if mode not in ("all", "in", "out"):
        raise ValueError(f"Unknown degree mode '{mode}'. Expected 'all', 'in' or 'out'.")
    if graph.is_directed() and mode == "in":
        return dict(graph.in_degree())
    if graph.is_directed() and mode == "out":
        return dict(graph.out_degree())
    return dict(graph.degree())


def degree_distribution(graph: nx.Graph, mode: str = "all", cumulative: bool = False) -> list[float]:
    """Relative frequency of each degree value, indexed from 0 to the max degree.

    With ``cumulative=True`` entry k is the share of nodes with degree >= k.
    """
    values = list(degrees(graph, mode).values())
    if not values:
        return []
    counts = [0] * (max(values) + 1)
    for d in values:
        counts[d] += 1
    total = len(values)
    freqs = [c / total for c in counts]
    if cumulative:
        running = 0.0
        tail = []
        for f in reversed(freqs):
            running += f
            tail.append(running)
        freqs = list(reversed(tail))
    return freqs


def _finite_or_none(value: float) -> Optional[float]:
    value = float(value)
    return None if math.isnan(value) else value


def degree_assortativity(graph: nx.Graph) -> Optional[float]:
    """Pearson correlation of degrees at both ends of each edge (None if undefined)."""
    if graph.number_of_edges() == 0:
        return None
    return _finite_or_none(nx.degree_assortativity_coefficient(graph))


def attribute_assortativity(graph: nx.Graph, attribute: str) -> Optional[float]:
    """Assortativity by a categorical node attribute such as ``faction``."""
    missing = [n for n, data in graph.nodes(data=True) if data.get(attribute) is None]
    if missing:
        raise ValueError(
            f"Attribute '{attribute}' is missing on {len(missing)} node(s), e.g. '{missing[0]}'"
        )
    if graph.number_of_edges() == 0:
        return None
    return _finite_or_none(nx.attribute_assortativity_coefficient(graph, attribute))


def largest_cliques(graph: nx.Graph) -> list[list[Hashable]]:
    """All maximum-size cliques of the undirected view, each sorted."""
    cliques = list(nx.find_cliques(simple_undirected(graph)))
    if not cliques:
        return []
    size = max(len(c) for c in cliques)
    return sorted(sorted(c) for c in cliques if len(c) == size)


def summarize(graph: nx.Graph) -> dict[str, Any]:
    """Collect the graph-level statistics in one dict (``NetworkSummary`` shape)."""
    return {
        "node_count": graph.number_of_nodes(),
        "edge_count": graph.number_of_edges(),
        "directed": graph.is_directed(),
        "weighted": is_weighted(graph),
        "density": edge_density(graph),
        "reciprocity": reciprocity(graph),
        "transitivity": global_transitivity(graph),
        "component_count": component_count(graph),
        "largest_component_size": len(largest_component_nodes(graph)),
        "mean_distance": mean_distance(graph),
        "diameter": diameter(graph),
    }
