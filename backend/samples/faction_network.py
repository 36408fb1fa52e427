"""Faction measures for the club sample.

Automatically loaded when the 'faction_network' sample is selected, next to
the built-in measures (degree, closeness, betweenness, ...).

All functions follow the uniform signature: (ctx: MeasureContext) -> dict[node, float]
"""

from netlab.engine.measure_registry import MeasureContext, MeasureResult, register_measure


@register_measure
def faction_brokerage(ctx: MeasureContext) -> MeasureResult:
    """Share of a member's ties that cross into another faction.

    Params:
        attribute (str): Node attribute holding the faction. Default 'faction'.
    """
    attribute = ctx.param("attribute", "faction")
    graph = ctx.graph
    scores: MeasureResult = {}
    for node in graph.nodes:
        neighbors = list(graph.neighbors(node))
        if not neighbors:
            scores[node] = 0.0
            continue
        own = graph.nodes[node].get(attribute)
        crossing = sum(1 for n in neighbors if graph.nodes[n].get(attribute) != own)
        scores[node] = crossing / len(neighbors)
    return scores


@register_measure
def tenure_weighted_degree(ctx: MeasureContext) -> MeasureResult:
    """Degree where each tie counts the neighbour's years in the club.

    Params:
        attribute (str): Node attribute holding tenure. Default 'years'.
    """
    attribute = ctx.param("attribute", "years")
    graph = ctx.graph
    return {
        node: float(sum(graph.nodes[n].get(attribute, 0) or 0 for n in graph.neighbors(node)))
        for node in graph.nodes
    }
