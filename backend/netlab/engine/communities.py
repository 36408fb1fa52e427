"""Community detection over the undirected view of a network."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Optional

import networkx as nx
from networkx.algorithms import community as nx_comm

from netlab.engine.graph_stats import simple_undirected

logger = logging.getLogger(__name__)

ALGORITHMS = ("louvain", "label_propagation", "fast_greedy", "edge_betweenness", "connected_components")


@dataclass
class CommunityResult:
    """Membership of every node plus community sizes (labels are 1..K, largest first)."""

    algorithm: str
    membership: dict[Hashable, int] = field(default_factory=dict)
    sizes: list[int] = field(default_factory=list)
    modularity: Optional[float] = None

    def members(self, label: int) -> list[Hashable]:
        return sorted(n for n, c in self.membership.items() if c == label)


def _modularity(graph: nx.Graph, communities: list[set], weight: str, resolution: float) -> Optional[float]:
    if graph.number_of_edges() == 0:
        return None
    return float(nx_comm.modularity(graph, communities, weight=weight, resolution=resolution))


def _most_central_edge(weight: Optional[str]):
    """Edge picker for Girvan–Newman: highest betweenness, weights read as distances."""

    def pick(g: nx.Graph) -> tuple:
        centrality = nx.edge_betweenness_centrality(g, weight=weight)
        return max(centrality, key=centrality.get)

    return pick


def _best_girvan_newman(graph: nx.Graph, weight: str, resolution: float) -> list[set]:
    """Cut the Girvan–Newman dendrogram at the level of highest modularity."""
    best = [set(c) for c in nx.connected_components(graph)]
    best_q = _modularity(graph, best, weight, resolution)
    for level in nx_comm.girvan_newman(graph, most_valuable_edge=_most_central_edge(weight)):
        partition = [set(c) for c in level]
        q = _modularity(graph, partition, weight, resolution)
        if q is not None and (best_q is None or q > best_q):
            best, best_q = partition, q
    return best


def _partition(graph: nx.Graph, algorithm: str, seed: Optional[int], resolution: float, weight: str) -> list[set]:
    if graph.number_of_edges() == 0:
        return [{n} for n in graph.nodes]
    if algorithm == "louvain":
        return nx_comm.louvain_communities(graph, weight=weight, resolution=resolution, seed=seed)
    if algorithm == "label_propagation":
        return [set(c) for c in nx_comm.label_propagation_communities(graph)]
    if algorithm == "fast_greedy":
        return [set(c) for c in nx_comm.greedy_modularity_communities(graph, weight=weight, resolution=resolution)]
    if algorithm == "edge_betweenness":
        return _best_girvan_newman(graph, weight, resolution)
    return [set(c) for c in nx.connected_components(graph)]


def _label(communities: Iterable[set]) -> tuple[dict[Hashable, int], list[int]]:
    ordered = sorted(communities, key=lambda c: (-len(c), min(c)))
    membership: dict[Hashable, int] = {}
    for label, members in enumerate(ordered, start=1):
        for node in members:
            membership[node] = label
    return membership, [len(c) for c in ordered]


def detect_communities(
    graph: nx.Graph,
    algorithm: str = "louvain",
    seed: Optional[int] = None,
    resolution: float = 1.0,
    weight: str = "weight",
) -> CommunityResult:
    """Partition *graph* into communities with the named algorithm.

    Directed graphs are analysed through their undirected simple view.
    Raises ``ValueError`` for an unknown algorithm.
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unknown community algorithm '{algorithm}'. Available: {list(ALGORITHMS)}")

    undirected = simple_undirected(graph)
    if undirected.number_of_nodes() == 0:
        return CommunityResult(algorithm=algorithm)

    partition = _partition(undirected, algorithm, seed, resolution, weight)
    membership, sizes = _label(partition)
    modularity = _modularity(undirected, [set(c) for c in partition], weight, resolution)
    logger.info("%s found %d communities (modularity=%s)", algorithm, len(sizes), modularity)
    return CommunityResult(algorithm=algorithm, membership=membership, sizes=sizes, modularity=modularity)
