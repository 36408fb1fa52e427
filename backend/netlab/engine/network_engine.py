"""NetworkEngine — core engine for network loading, descriptive statistics, node measures, and communities."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import networkx as nx
import pandas as pd

from netlab.engine import graph_stats
from netlab.engine.analysis_log import AnalysisLog
from netlab.engine.communities import CommunityResult, detect_communities
from netlab.engine.loaders import frames_to_graph_data
from netlab.engine.measure_registry import MeasureContext, MeasureRegistry
from netlab.engine.tables import records_by_key

logger = logging.getLogger(__name__)

TOP_N = 10

DEFAULT_PALETTE = [
    "#4A90D9", "#F5A623", "#5CB85C", "#D9534F", "#9B59B6",
    "#1ABC9C", "#E67E22", "#34495E", "#F1C40F", "#7F8C8D",
]


class NetworkEngine:
    """Holds one loaded network and the node attribute mappings derived from it."""

    def __init__(self) -> None:
        self.graph: nx.Graph = nx.Graph()
        self.config: Optional[dict[str, Any]] = None
        self.initial_graph: nx.Graph = nx.Graph()
        self.measure_registry: MeasureRegistry = MeasureRegistry()
        self.analysis_log: AnalysisLog = AnalysisLog()
        self.node_metrics: dict[str, dict[str, float]] = {}
        self.communities: dict[str, CommunityResult] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_network(
        self,
        config: dict[str, Any],
        measure_module: object | None = None,
        custom_measure_module: object | None = None,
    ) -> None:
        """Build the NetworkX graph from *config* (a NetworkConfig-shaped dict).

        If *measure_module* is provided, scan it for ``@register_measure``-decorated
        functions and register them as ``"builtin"``. Functions found in
        *custom_measure_module* are registered as ``"custom"`` and override
        builtins with the same name.
        """
        self.config = config
        self.measure_registry = MeasureRegistry()
        self._clear_derived()

        graph_data = config.get("graph_data", {})
        graph: nx.Graph = nx.DiGraph() if graph_data.get("directed", False) else nx.Graph()

        for node in graph_data.get("nodes", []):
            attrs = {"name": node.get("name") or node["id"], **node.get("properties", {})}
            graph.add_node(node["id"], **attrs)

        repeated = 0
        for edge in graph_data.get("edges", []):
            source, target = edge["source"], edge["target"]
            attrs = dict(edge.get("properties", {}))
            if edge.get("weight") is not None:
                attrs["weight"] = edge["weight"]
            if graph.has_edge(source, target):
                # Repeated rows collapse into one tie; unweighted rows count 1
                existing = graph.edges[source, target].get("weight", 1)
                attrs["weight"] = existing + attrs.get("weight", 1)
                repeated += 1
            for endpoint in (source, target):
                if not graph.has_node(endpoint):
                    graph.add_node(endpoint, name=endpoint)
            graph.add_edge(source, target, **attrs)
        if repeated:
            logger.warning(
                "Summed weights of %d repeated edge row(s) into existing edges (directed=%s)",
                repeated,
                graph.is_directed(),
            )

        self.graph = graph
        # Reset restores this copy
        self.initial_graph = graph.copy()

        if measure_module is not None:
            self.measure_registry.register_from_module(measure_module, source="builtin")
        if custom_measure_module is not None:
            self.measure_registry.register_from_module(custom_measure_module, source="custom")

        logger.info(
            "Loaded network '%s': %d nodes, %d edges (directed=%s)",
            config.get("metadata", {}).get("name", "?"),
            graph.number_of_nodes(),
            graph.number_of_edges(),
            graph.is_directed(),
        )
        self.analysis_log.record(
            "load",
            {"name": config.get("metadata", {}).get("name")},
            {"nodes": graph.number_of_nodes(), "edges": graph.number_of_edges()},
        )

    def load_frames(
        self,
        edges: pd.DataFrame,
        nodes: Optional[pd.DataFrame] = None,
        directed: bool = False,
        metadata: Optional[dict[str, Any]] = None,
        measure_module: object | None = None,
        custom_measure_module: object | None = None,
    ) -> None:
        """Load a network from edge and node frames (the CSV path)."""
        graph_data = frames_to_graph_data(edges, nodes, directed=directed)
        config = {
            "metadata": metadata or {"name": "csv_upload"},
            "graph_data": graph_data.model_dump(),
        }
        self.load_network(config, measure_module=measure_module, custom_measure_module=custom_measure_module)

    @property
    def is_loaded(self) -> bool:
        return self.config is not None

    # ------------------------------------------------------------------
    # Graph-level statistics
    # ------------------------------------------------------------------

    def summary(self) -> dict[str, Any]:
        stats = graph_stats.summarize(self.graph)
        self.analysis_log.record("summary", {}, {"density": stats["density"], "components": stats["component_count"]})
        return stats

    def degree_distribution(self, mode: str = "all", cumulative: bool = False) -> list[float]:
        dist = graph_stats.degree_distribution(self.graph, mode=mode, cumulative=cumulative)
        self.analysis_log.record("degree_distribution", {"mode": mode, "cumulative": cumulative}, {"max_degree": len(dist) - 1})
        return dist

    def assortativity(self, attribute: Optional[str] = None) -> Optional[float]:
        """Degree assortativity, or assortativity by a categorical node attribute."""
        if attribute is None:
            value = graph_stats.degree_assortativity(self.graph)
        else:
            value = graph_stats.attribute_assortativity(self.graph, attribute)
        self.analysis_log.record("assortativity", {"attribute": attribute}, {"coefficient": value})
        return value

    def largest_cliques(self) -> list[list[str]]:
        cliques = graph_stats.largest_cliques(self.graph)
        self.analysis_log.record("largest_cliques", {}, {"count": len(cliques), "size": len(cliques[0]) if cliques else 0})
        return cliques

    # ------------------------------------------------------------------
    # Node measures
    # ------------------------------------------------------------------

    def compute_measure(
        self,
        name: str,
        params: Optional[dict[str, Any]] = None,
        top: int = TOP_N,
    ) -> dict[str, Any]:
        """Run the registered measure *name* and keep its values in ``node_metrics``.

        Returns ``{"status": "success", "measure", "values", "top"}`` or an
        error dict when the measure is unknown or the algorithm fails to converge.
        """
        func = self.measure_registry.get(name)
        if func is None:
            return {"status": "error", "message": f"Measure '{name}' not registered"}

        params = {k: v for k, v in (params or {}).items() if v is not None}
        ctx = MeasureContext(graph=self.graph, params=params)
        try:
            raw = func(ctx)
        except nx.NetworkXException as exc:
            return {"status": "error", "message": f"Measure '{name}' failed: {exc}"}

        values = {str(n): float(v) for n, v in raw.items()}
        self.node_metrics[name] = values

        ranked = sorted(values.items(), key=lambda item: (-item[1], item[0]))[:top]
        top_nodes = [
            {"id": n, "name": self.graph.nodes[n].get("name", n) if self.graph.has_node(n) else n, "value": v}
            for n, v in ranked
        ]
        self.analysis_log.record("measure", {"name": name, **params}, {"nodes": len(values)})
        return {"status": "success", "measure": name, "values": values, "top": top_nodes}

    # ------------------------------------------------------------------
    # Communities and cohesion
    # ------------------------------------------------------------------

    def detect_communities(
        self,
        algorithm: str = "louvain",
        seed: Optional[int] = None,
        resolution: float = 1.0,
    ) -> CommunityResult:
        result = detect_communities(self.graph, algorithm=algorithm, seed=seed, resolution=resolution)
        self.communities[algorithm] = result
        self.analysis_log.record(
            "communities",
            {"algorithm": algorithm, "seed": seed, "resolution": resolution},
            {"count": len(result.sizes), "modularity": result.modularity},
        )
        return result

    def k_core(self, k: Optional[int] = None) -> dict[str, Any]:
        """Coreness of every node plus the members of the *k*-core.

        *k* defaults to the highest coreness in the graph (the main core).
        """
        if k is not None and k < 0:
            raise ValueError("k must be a non-negative integer")
        simple = self.graph.copy()
        simple.remove_edges_from(list(nx.selfloop_edges(simple)))
        coreness = {str(n): int(c) for n, c in nx.core_number(simple).items()}
        if k is None:
            k = max(coreness.values(), default=0)
        core_nodes = sorted(n for n, c in coreness.items() if c >= k)

        self.node_metrics["coreness"] = {n: float(c) for n, c in coreness.items()}
        self.analysis_log.record("k_core", {"k": k}, {"core_size": len(core_nodes)})
        return {"k": k, "coreness": coreness, "core_nodes": core_nodes}

    def restrict_to_largest_component(self) -> dict[str, int]:
        """Replace the graph with its largest (weakly) connected component.

        Derived node mappings are dropped since they describe the old graph.
        """
        keep = graph_stats.largest_component_nodes(self.graph)
        removed = self.graph.number_of_nodes() - len(keep)
        self.graph = self.graph.subgraph(keep).copy()
        self.node_metrics = {}
        self.communities = {}
        self.analysis_log.record("restrict_largest_component", {}, {"kept": len(keep), "removed": removed})
        return {"kept": len(keep), "removed": removed}

    # ------------------------------------------------------------------
    # Paths and neighbourhoods
    # ------------------------------------------------------------------

    def _require_node(self, node_id: str) -> None:
        if not self.graph.has_node(node_id):
            raise ValueError(f"Node '{node_id}' not found in graph.")

    def shortest_path(self, source: str, target: str) -> Optional[list[str]]:
        """Node sequence of one shortest path, or None when *target* is unreachable."""
        self._require_node(source)
        self._require_node(target)
        try:
            path = nx.shortest_path(self.graph, source, target)
        except nx.NetworkXNoPath:
            path = None
        self.analysis_log.record("shortest_path", {"source": source, "target": target}, {"length": len(path) - 1 if path else None})
        return path

    def neighborhood(self, node_id: str, order: int = 1, mode: str = "all") -> list[str]:
        """Nodes reachable from *node_id* in at most *order* steps (excluding itself)."""
        self._require_node(node_id)
        if order < 1:
            raise ValueError("order must be at least 1")
        view = graph_stats.oriented_view(self.graph, mode)
        reached = nx.single_source_shortest_path_length(view, node_id, cutoff=order)
        return sorted(n for n in reached if n != node_id)

    # ------------------------------------------------------------------
    # Node attributes and visual style
    # ------------------------------------------------------------------

    def attach_node_attributes(self, records: Iterable[dict[str, Any]], key: str = "id") -> dict[str, Any]:
        """Merge a record set onto nodes by *key*; unknown keys are reported, not added."""
        rows = records_by_key(records, key)
        matched = 0
        unmatched: list[str] = []
        for node_id, attrs in rows.items():
            if not self.graph.has_node(node_id):
                unmatched.append(node_id)
                continue
            self.graph.nodes[node_id].update({k: v for k, v in attrs.items() if v is not None})
            matched += 1
        self.analysis_log.record("attach_node_attributes", {"key": key}, {"matched": matched, "unmatched": len(unmatched)})
        return {"matched": matched, "unmatched": unmatched}

    def _node_values(self, name: str) -> dict[str, Any]:
        """Look up a per-node value: computed measure, community labels, then node attribute."""
        if name in self.node_metrics:
            return dict(self.node_metrics[name])
        if name in self.communities:
            return {str(n): c for n, c in self.communities[name].membership.items()}
        values = {str(n): data.get(name) for n, data in self.graph.nodes(data=True)}
        if all(v is None for v in values.values()):
            raise ValueError(f"'{name}' is neither a computed measure, a community result nor a node attribute")
        return values

    def apply_style(
        self,
        size_by: Optional[str] = None,
        color_by: Optional[str] = None,
        width_by: Optional[str] = "weight",
        min_size: float = 5.0,
        max_size: float = 25.0,
        width_factor: float = 1.0,
    ) -> dict[str, Any]:
        """Attach ``size``, ``color`` and ``width`` attributes for rendering.

        Size scales linearly from *min_size* to *max_size*; colours come from the
        network's palette, falling back to ``DEFAULT_PALETTE`` in sorted value order.
        """
        if size_by is not None:
            values = self._node_values(size_by)
            numeric = {n: v for n, v in values.items() if isinstance(v, (int, float)) and not isinstance(v, bool)}
            if not numeric:
                raise ValueError(f"'{size_by}' has no numeric values to size nodes by")
            low, high = min(numeric.values()), max(numeric.values())
            for n in self.graph.nodes:
                v = numeric.get(str(n))
                if v is None:
                    size = min_size
                elif high == low:
                    size = (min_size + max_size) / 2
                else:
                    size = min_size + (max_size - min_size) * (v - low) / (high - low)
                self.graph.nodes[n]["size"] = size

        if color_by is not None:
            values = self._node_values(color_by)
            style = (self.config or {}).get("style_def") or {}
            palette = dict(style.get("palette", {}))
            default_color = style.get("default_color", "#9E9E9E")
            categories = sorted({str(v) for v in values.values() if v is not None})
            for i, category in enumerate(c for c in categories if c not in palette):
                palette[category] = DEFAULT_PALETTE[i % len(DEFAULT_PALETTE)]
            for n in self.graph.nodes:
                v = values.get(str(n))
                self.graph.nodes[n]["color"] = default_color if v is None else palette[str(v)]

        if width_by is not None:
            for _u, _v, data in self.graph.edges(data=True):
                value = data.get(width_by)
                data["width"] = (value if isinstance(value, (int, float)) else 1.0) * width_factor

        self.analysis_log.record("style", {"size_by": size_by, "color_by": color_by, "width_by": width_by}, {})
        return self.get_graph_for_render()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def node_table(self) -> list[dict[str, Any]]:
        """One record per node: attributes, every computed measure, and community labels."""
        rows = []
        for n, attrs in self.graph.nodes(data=True):
            row: dict[str, Any] = {"id": n, **attrs}
            for measure, values in self.node_metrics.items():
                row[measure] = values.get(str(n))
            for algorithm, result in self.communities.items():
                row[f"community_{algorithm}"] = result.membership.get(n)
            rows.append(row)
        return rows

    def get_graph_for_render(self) -> dict[str, Any]:
        """Export graph data as ``{directed, nodes: [{id, name, properties}], edges: [{source, target, weight, properties}]}``."""
        nodes = []
        for nid, attrs in self.graph.nodes(data=True):
            properties = {k: v for k, v in attrs.items() if k != "name"}
            nodes.append({"id": nid, "name": attrs.get("name", nid), "properties": properties})

        edges = []
        for u, v, attrs in self.graph.edges(data=True):
            properties = {k: val for k, val in attrs.items() if k != "weight"}
            edges.append({"source": u, "target": v, "weight": attrs.get("weight"), "properties": properties})

        return {"directed": self.graph.is_directed(), "nodes": nodes, "edges": edges}

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def _clear_derived(self) -> None:
        self.node_metrics = {}
        self.communities = {}

    def reset(self) -> None:
        """Restore the graph as loaded and drop every derived mapping and style."""
        self.graph = self.initial_graph.copy()
        self._clear_derived()
