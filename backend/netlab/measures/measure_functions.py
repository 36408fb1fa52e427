"""Built-in node measures: centrality, coreness, and local clustering.

All functions follow the uniform signature: (ctx: MeasureContext) -> dict[node, float]
"""

import networkx as nx

from netlab.engine.graph_stats import degrees, oriented_view, simple_undirected
from netlab.engine.measure_registry import MeasureContext, MeasureResult, register_measure


def _scale_to_max(values: dict) -> MeasureResult:
    top = max(values.values(), default=0.0)
    if top <= 0:
        return {n: 0.0 for n in values}
    return {n: float(v) / top for n, v in values.items()}


# ---------------------------------------------------------------------------
# Degree-based
# ---------------------------------------------------------------------------

@register_measure
def degree(ctx: MeasureContext) -> MeasureResult:
    """Number of incident edges.

    Params:
        mode (str): 'all', 'in' or 'out'. Ignored for undirected graphs. Default 'all'.
        loops (bool): Count self-loops. Default True.
    """
    graph = ctx.graph
    if not ctx.param("loops", True):
        graph = graph.copy()
        graph.remove_edges_from(list(nx.selfloop_edges(graph)))
    return {n: float(d) for n, d in degrees(graph, ctx.param("mode", "all")).items()}


@register_measure
def strength(ctx: MeasureContext) -> MeasureResult:
    """Weighted degree: sum of incident edge weights (missing weights count as 1).

    Params:
        mode (str): 'all', 'in' or 'out'. Default 'all'.
        weight (str): Edge attribute holding the weight. Default 'weight'.
    """
    graph = ctx.graph
    mode = ctx.param("mode", "all")
    weight = ctx.param("weight", "weight")
    if mode not in ("all", "in", "out"):
        raise ValueError(f"Unknown mode '{mode}'. Expected 'all', 'in' or 'out'.")
    if graph.is_directed() and mode == "in":
        view = graph.in_degree(weight=weight)
    elif graph.is_directed() and mode == "out":
        view = graph.out_degree(weight=weight)
    else:
        view = graph.degree(weight=weight)
    return {n: float(d) for n, d in view}


# ---------------------------------------------------------------------------
# Path-based
# ---------------------------------------------------------------------------

@register_measure
def closeness(ctx: MeasureContext) -> MeasureResult:
    """Inverse of the summed shortest-path distance to every reachable node.

    Unreachable nodes are ignored; a node that reaches nobody scores 0.

    Params:
        mode (str): 'out', 'in' or 'all'. Default 'out'.
        normalized (bool): Multiply by the number of reachable nodes. Default False.
        weight (str | None): Edge attribute used as distance. Default None (hop count).
    """
    graph = oriented_view(ctx.graph, ctx.param("mode", "out"))
    weight = ctx.param("weight")
    normalized = ctx.param("normalized", False)

    scores: MeasureResult = {}
    for node in graph.nodes:
        if weight:
            dist = nx.single_source_dijkstra_path_length(graph, node, weight=weight)
        else:
            dist = nx.single_source_shortest_path_length(graph, node)
        others = [d for target, d in dist.items() if target != node]
        total = sum(others)
        if total <= 0:
            scores[node] = 0.0
            continue
        score = 1.0 / total
        scores[node] = score * len(others) if normalized else score
    return scores


@register_measure
def betweenness(ctx: MeasureContext) -> MeasureResult:
    """Sum over node pairs of the share of shortest paths passing through the node.

    Params:
        normalized (bool): Divide by the number of pairs. Default False.
        weight (str | None): Edge attribute used as distance. Default None.
    """
    return {
        n: float(v)
        for n, v in nx.betweenness_centrality(
            ctx.graph,
            normalized=ctx.param("normalized", False),
            weight=ctx.param("weight"),
        ).items()
    }


# ---------------------------------------------------------------------------
# Spectral
# ---------------------------------------------------------------------------

@register_measure
def eigenvector(ctx: MeasureContext) -> MeasureResult:
    """Eigenvector centrality scaled so the top node scores 1.

    Params:
        weight (str | None): Edge attribute used as tie strength. Default None.
    """
    if ctx.graph.number_of_nodes() == 0:
        return {}
    if ctx.graph.number_of_edges() == 0:
        return {n: 0.0 for n in ctx.graph.nodes}
    values = nx.eigenvector_centrality(ctx.graph, max_iter=1000, weight=ctx.param("weight"))
    return _scale_to_max(values)


@register_measure
def pagerank(ctx: MeasureContext) -> MeasureResult:
    """PageRank with damping factor.

    Params:
        damping (float): Damping factor. Default 0.85.
        weight (str | None): Edge attribute used as tie strength. Default 'weight'.
    """
    if ctx.graph.number_of_nodes() == 0:
        return {}
    values = nx.pagerank(ctx.graph, alpha=ctx.param("damping", 0.85), weight=ctx.param("weight", "weight"))
    return {n: float(v) for n, v in values.items()}


def _hits(graph: nx.Graph) -> tuple[dict, dict]:
    if graph.number_of_edges() == 0:
        zeros = {n: 0.0 for n in graph.nodes}
        return zeros, dict(zeros)
    hubs, authorities = nx.hits(graph, max_iter=1000)
    return _scale_to_max(hubs), _scale_to_max(authorities)


@register_measure
def hub_score(ctx: MeasureContext) -> MeasureResult:
    """Kleinberg hub score (outgoing links to good authorities), top node scores 1."""
    return _hits(ctx.graph)[0]


@register_measure
def authority_score(ctx: MeasureContext) -> MeasureResult:
    """Kleinberg authority score (incoming links from good hubs), top node scores 1."""
    return _hits(ctx.graph)[1]


# ---------------------------------------------------------------------------
# Cohesion
# ---------------------------------------------------------------------------

def _directed_core_number(graph: nx.DiGraph, mode: str) -> dict:
    """Peel nodes by in- or out-degree only."""
    degree = dict(graph.in_degree() if mode == "in" else graph.out_degree())
    # Removing a node lowers the in-degree of its successors, the out-degree of its predecessors
    affected = graph.successors if mode == "in" else graph.predecessors
    remaining = set(graph.nodes)
    core: dict = {}
    k = 0
    while remaining:
        k = max(k, min(degree[n] for n in remaining))
        stack = [n for n in remaining if degree[n] <= k]
        while stack:
            node = stack.pop()
            if node not in remaining:
                continue
            remaining.remove(node)
            core[node] = k
            for other in affected(node):
                if other in remaining:
                    degree[other] -= 1
                    if degree[other] <= k:
                        stack.append(other)
    return core


@register_measure
def coreness(ctx: MeasureContext) -> MeasureResult:
    """Largest k such that the node belongs to the k-core (self-loops ignored).

    Params:
        mode (str): 'all', 'in' or 'out'. Ignored for undirected graphs. Default 'all'.
    """
    mode = ctx.param("mode", "all")
    if mode not in ("all", "in", "out"):
        raise ValueError(f"Unknown mode '{mode}'. Expected 'all', 'in' or 'out'.")
    graph = ctx.graph.copy()
    graph.remove_edges_from(list(nx.selfloop_edges(graph)))
    if graph.is_directed() and mode != "all":
        return {n: float(k) for n, k in _directed_core_number(graph, mode).items()}
    return {n: float(k) for n, k in nx.core_number(graph).items()}


@register_measure
def local_transitivity(ctx: MeasureContext) -> MeasureResult:
    """Share of a node's neighbour pairs that are themselves linked (undirected view)."""
    return {n: float(v) for n, v in nx.clustering(simple_undirected(ctx.graph)).items()}
