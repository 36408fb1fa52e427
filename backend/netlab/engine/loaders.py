"""Readers turning flat edge/node tables into ``GraphData``.

Edge tables need two endpoint columns (``source``/``target`` or ``from``/``to``;
otherwise the first two columns are used) and may carry ``weight`` plus any
other edge attributes. Node tables need an ``id`` column (otherwise the first
column) and may carry ``name`` plus categorical attributes such as ``faction``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable, Iterable, Optional, Union

import pandas as pd

from netlab.engine.tables import to_records
from netlab.models.graph import GraphData, GraphEdge, GraphNode

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO]

EDGE_ALIASES = {"from": "source", "to": "target"}
ON_ERROR_MODES = ("skip", "raise")


@dataclass
class LoadReport:
    """Frames read successfully plus one entry per source that failed."""

    frames: list[pd.DataFrame] = field(default_factory=list)
    failures: list[dict[str, str]] = field(default_factory=list)


def _as_id(value: Any) -> str:
    """Render a cell as a node id ("3.0" read from a numeric column becomes "3")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns={c: str(c).strip().lower() for c in df.columns})


def _source_name(source: Source) -> str:
    return getattr(source, "name", None) or str(source)


def read_edge_table(source: Source) -> pd.DataFrame:
    """Read an edge list CSV into a frame with ``source``, ``target`` and optional ``weight``."""
    df = _normalize_columns(pd.read_csv(source))
    df = df.rename(columns=EDGE_ALIASES)
    if "source" not in df.columns or "target" not in df.columns:
        if len(df.columns) < 2:
            raise ValueError(f"Edge table '{_source_name(source)}' needs at least two columns")
        first, second = df.columns[:2]
        df = df.rename(columns={first: "source", second: "target"})

    missing = df["source"].isna() | df["target"].isna()
    if missing.any():
        logger.warning("Dropping %d edge row(s) with a missing endpoint from %s", int(missing.sum()), _source_name(source))
        df = df[~missing]

    df = df.assign(source=df["source"].map(_as_id), target=df["target"].map(_as_id))
    if "weight" in df.columns:
        df["weight"] = pd.to_numeric(df["weight"], errors="coerce")
    return df.reset_index(drop=True)


def read_node_table(source: Source) -> pd.DataFrame:
    """Read a node list CSV into a frame with ``id``, ``name`` and attribute columns."""
    df = _normalize_columns(pd.read_csv(source))
    if "id" not in df.columns:
        if len(df.columns) == 0:
            raise ValueError(f"Node table '{_source_name(source)}' has no columns")
        df = df.rename(columns={df.columns[0]: "id"})
    df = df[df["id"].notna()].copy()
    df["id"] = df["id"].map(_as_id)
    if "name" not in df.columns:
        df["name"] = df["id"]
    else:
        df["name"] = df["name"].where(df["name"].notna(), df["id"]).astype(str)
    return df.reset_index(drop=True)


def frames_to_graph_data(
    edges: pd.DataFrame,
    nodes: Optional[pd.DataFrame] = None,
    directed: bool = False,
) -> GraphData:
    """Combine edge and node frames into ``GraphData``.

    Endpoints absent from the node table are added as bare nodes.
    Raises ``ValueError`` on duplicate node ids.
    """
    graph_nodes: list[GraphNode] = []
    seen: set[str] = set()

    if nodes is not None:
        duplicated = nodes["id"][nodes["id"].duplicated()].unique().tolist()
        if duplicated:
            raise ValueError(f"Duplicate node ids in node table: {duplicated[:5]}")
        for row in to_records(nodes):
            node_id = row.pop("id")
            name = row.pop("name", None)
            graph_nodes.append(GraphNode(id=node_id, name=name, properties=row))
            seen.add(node_id)

    graph_edges: list[GraphEdge] = []
    for row in to_records(edges):
        source = row.pop("source")
        target = row.pop("target")
        weight = row.pop("weight", None)
        for endpoint in (source, target):
            if endpoint not in seen:
                graph_nodes.append(GraphNode(id=endpoint, name=endpoint))
                seen.add(endpoint)
        graph_edges.append(GraphEdge(source=source, target=target, weight=weight, properties=row))

    return GraphData(directed=directed, nodes=graph_nodes, edges=graph_edges)


def read_tables(
    sources: Iterable[Source],
    reader: Callable[[Source], pd.DataFrame] = read_edge_table,
    on_error: str = "skip",
) -> LoadReport:
    """Read every source with *reader*.

    ``on_error="skip"`` logs a failed source, records it in the report and moves
    on to the next one; ``on_error="raise"`` re-raises the first failure.
    """
    if on_error not in ON_ERROR_MODES:
        raise ValueError(f"Unknown on_error mode '{on_error}'. Expected one of {list(ON_ERROR_MODES)}")

    report = LoadReport()
    for source in sources:
        try:
            frame = reader(source)
        except (OSError, ValueError) as exc:
            if on_error == "raise":
                raise
            logger.warning("Skipping %s: %s", _source_name(source), exc)
            report.failures.append({"source": _source_name(source), "error": str(exc)})
            continue
        report.frames.append(frame)
    return report


def load_csv_network(
    edge_sources: Iterable[Source],
    node_source: Optional[Source] = None,
    directed: bool = False,
    on_error: str = "skip",
) -> tuple[GraphData, list[dict[str, str]]]:
    """Build ``GraphData`` from one or more edge lists and an optional node list.

    Returns the graph data and the failures of sources that were skipped.
    Raises ``ValueError`` if no edge list could be read.
    """
    edge_report = read_tables(edge_sources, read_edge_table, on_error=on_error)
    failures = list(edge_report.failures)
    if not edge_report.frames:
        raise ValueError("No edge table could be read: " + "; ".join(f["error"] for f in failures))
    edges = pd.concat(edge_report.frames, ignore_index=True)

    nodes = None
    if node_source is not None:
        node_report = read_tables([node_source], read_node_table, on_error=on_error)
        failures.extend(node_report.failures)
        if node_report.frames:
            nodes = node_report.frames[0]

    logger.info("Read %d edge row(s) from %d table(s)", len(edges), len(edge_report.frames))
    return frames_to_graph_data(edges, nodes, directed=directed), failures
