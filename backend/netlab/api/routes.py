"""REST API routes for the network — load, statistics, measures, communities, style, reset, history, samples."""

from __future__ import annotations

import importlib.util
import io
import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import ValidationError

from netlab.engine import loaders
from netlab.engine.network_engine import TOP_N, NetworkEngine
from netlab.measures import measure_functions
from netlab.models.api import (
    AssortativityResponse,
    CommunityRequest,
    CommunityResponse,
    CoreResponse,
    MeasureResponse,
    NeighborhoodResponse,
    NetworkSummary,
    PathResponse,
    StyleRequest,
)
from netlab.models.network import NetworkConfig
from netlab.models.tables import NodeAttributeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/network")

# --- Module-level singletons ---
engine = NetworkEngine()

# --- Samples directory (resolved relative to project root) ---
SAMPLES_DIR = Path(__file__).resolve().parent.parent.parent / "samples"


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _require_loaded() -> None:
    if not engine.is_loaded:
        raise HTTPException(status_code=400, detail="No network loaded. Call /load first.")


def _require_node(node_id: str) -> None:
    if not engine.graph.has_node(node_id):
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found in graph.")


def _sample_names() -> list[str]:
    """Samples are ``<name>.json`` workspaces or ``<name>/`` folders holding edge CSVs."""
    if not SAMPLES_DIR.is_dir():
        return []
    names = {p.stem for p in SAMPLES_DIR.glob("*.json")}
    names.update(p.name for p in SAMPLES_DIR.iterdir() if p.is_dir() and any(p.glob("edges*.csv")))
    return sorted(names)


def _load_sample_data(sample_name: str) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Load a built-in sample by name; returns the config dict and skipped sources."""
    json_path = SAMPLES_DIR / f"{sample_name}.json"
    csv_dir = SAMPLES_DIR / sample_name

    if json_path.is_file():
        try:
            return json.loads(json_path.read_text(encoding="utf-8")), []
        except json.JSONDecodeError as exc:
            raise HTTPException(
                status_code=400, detail=f"Sample file '{sample_name}.json' contains invalid JSON: {exc}"
            ) from exc

    if csv_dir.is_dir() and any(csv_dir.glob("edges*.csv")):
        meta_path = csv_dir / "metadata.json"
        metadata = json.loads(meta_path.read_text(encoding="utf-8")) if meta_path.is_file() else {}
        nodes_path = csv_dir / "nodes.csv"
        try:
            graph_data, failures = loaders.load_csv_network(
                sorted(csv_dir.glob("edges*.csv")),
                nodes_path if nodes_path.is_file() else None,
                directed=bool(metadata.pop("directed", False)),
                on_error="skip",
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Sample '{sample_name}' could not be read: {exc}") from exc
        style_def = metadata.pop("style_def", None)
        config: dict[str, Any] = {
            "metadata": {"name": sample_name, **metadata},
            "graph_data": graph_data.model_dump(),
        }
        if style_def is not None:
            config["style_def"] = style_def
        return config, failures

    raise HTTPException(
        status_code=400,
        detail=f"Sample '{sample_name}' not found. Available samples: {_sample_names()}",
    )


def _load_module_from_path(path: Path, module_name: str = "custom_measures") -> object:
    """Dynamically load a Python module from a file path using importlib."""
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise HTTPException(status_code=400, detail=f"Cannot load Python module from '{path}'")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _find_convention_measure_file(sample_name: str) -> Path | None:
    """Check for a convention-based .py file alongside the sample."""
    py_path = SAMPLES_DIR / f"{sample_name}.py"
    if py_path.is_file():
        return py_path
    return None


async def _read_csv_upload(upload: UploadFile, reader) -> Any:
    raw = await upload.read()
    try:
        return reader(io.BytesIO(raw))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid CSV in '{upload.filename}': {exc}") from exc


# ------------------------------------------------------------------
# GET /samples
# ------------------------------------------------------------------

@router.get("/samples")
async def list_samples() -> list[dict[str, str]]:
    """Return the built-in sample networks with their descriptions."""
    results = []
    for name in _sample_names():
        # Read description from the JSON metadata if available
        description = ""
        for meta_path in (SAMPLES_DIR / f"{name}.json", SAMPLES_DIR / name / "metadata.json"):
            if not meta_path.is_file():
                continue
            try:
                content = json.loads(meta_path.read_text(encoding="utf-8"))
                description = content.get("metadata", content).get("description", "")
            except (json.JSONDecodeError, AttributeError) as exc:
                logger.warning("Unreadable sample metadata %s: %s", meta_path, exc)
            break
        results.append({"name": name, "description": description})
    return results


# ------------------------------------------------------------------
# POST /load
# ------------------------------------------------------------------

@router.post("/load")
async def load_network(
    file: UploadFile | None = File(None),
    edges_file: UploadFile | None = File(None),
    nodes_file: UploadFile | None = File(None),
    measure_file: UploadFile | None = File(None),
    sample: str | None = None,
    directed: bool = False,
) -> dict[str, Any]:
    """Load a network from an uploaded JSON file, uploaded CSV edge/node lists, or a built-in sample.

    Accepts one of:
    - ``file``: a NetworkConfig JSON document,
    - ``edges_file`` (+ optional ``nodes_file``): CSV edge and node lists; ``directed``
      selects the graph kind,
    - query parameter ``sample`` naming a built-in network.

    Optionally accepts ``measure_file`` containing ``@register_measure``-decorated
    functions that override builtin measures with the same name. When loading a
    sample, ``samples/<sample_name>.py`` is loaded the same way if present.
    """
    custom_module = None
    sample_name: str | None = None
    warnings: list[str] = []

    if file is not None:
        # --- JSON upload path ---
        try:
            raw = await file.read()
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc}") from exc
    elif edges_file is not None:
        # --- CSV upload path ---
        edges = await _read_csv_upload(edges_file, loaders.read_edge_table)
        nodes = await _read_csv_upload(nodes_file, loaders.read_node_table) if nodes_file is not None else None
        try:
            graph_data = loaders.frames_to_graph_data(edges, nodes, directed=directed)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        data = {
            "metadata": {"name": Path(edges_file.filename or "upload").stem},
            "graph_data": graph_data.model_dump(),
        }
    elif sample is not None:
        # --- Built-in sample path ---
        sample_name = sample
        data, failures = _load_sample_data(sample)
        warnings.extend(f"Skipped '{f['source']}': {f['error']}" for f in failures)
    else:
        raise HTTPException(
            status_code=400,
            detail="Provide a JSON file, an edges_file CSV upload, or a 'sample' query parameter.",
        )

    # Validate via Pydantic, 422 with field-level errors; the engine gets the coerced values
    try:
        data = NetworkConfig(**data).model_dump()
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()) from exc
    except TypeError as exc:
        raise HTTPException(status_code=422, detail=f"Network document must be a JSON object: {exc}") from exc

    # --- Resolve custom measure module ---
    # Priority 1: explicit measure_file upload (overrides convention)
    if measure_file is not None:
        raw_py = await measure_file.read()
        # Write to a temp file so importlib can load it
        tmp = tempfile.NamedTemporaryFile(suffix=".py", delete=False, mode="wb")
        tmp.write(raw_py)
        tmp.flush()
        tmp.close()
        try:
            custom_module = _load_module_from_path(Path(tmp.name), module_name="uploaded_measures")
        except Exception as exc:
            raise HTTPException(status_code=400, detail=f"Failed to load custom measure file: {exc}") from exc
        finally:
            Path(tmp.name).unlink(missing_ok=True)
    # Priority 2: convention-based .py file alongside the sample
    elif sample_name is not None:
        convention_path = _find_convention_measure_file(sample_name)
        if convention_path is not None:
            try:
                custom_module = _load_module_from_path(convention_path, module_name=f"sample_{sample_name}_measures")
            except Exception as exc:
                logger.warning("Failed to load convention measure file %s: %s", convention_path, exc)
                warnings.append(f"Custom measures for '{sample_name}' could not be loaded: {exc}")

    # load_network clears previous state
    engine.load_network(data, measure_module=measure_functions, custom_measure_module=custom_module)

    for entry in engine.measure_registry.list_measures_with_source():
        logger.info("Registered measure: %s (source: %s)", entry["name"], entry["source"])
    for w in warnings:
        logger.warning(w)

    return {
        "metadata": data.get("metadata"),
        "style_def": data.get("style_def"),
        "graph_data": engine.get_graph_for_render(),
        "registered_measures": engine.measure_registry.list_measures_with_source(),
        "warnings": warnings,
    }


# ------------------------------------------------------------------
# Graph and graph-level statistics
# ------------------------------------------------------------------

@router.get("/graph")
async def get_graph() -> dict[str, Any]:
    _require_loaded()
    return engine.get_graph_for_render()


@router.get("/summary", response_model=NetworkSummary)
async def get_summary() -> NetworkSummary:
    """Node/edge counts, density, reciprocity, transitivity, components, distances."""
    _require_loaded()
    return NetworkSummary(**engine.summary())


@router.get("/degree-distribution")
async def get_degree_distribution(mode: str = "all", cumulative: bool = False) -> dict[str, Any]:
    _require_loaded()
    try:
        distribution = engine.degree_distribution(mode=mode, cumulative=cumulative)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"mode": mode, "cumulative": cumulative, "distribution": distribution}


@router.get("/assortativity", response_model=AssortativityResponse)
async def get_assortativity(attribute: str | None = None) -> AssortativityResponse:
    """Degree assortativity, or assortativity by the given categorical node attribute."""
    _require_loaded()
    try:
        coefficient = engine.assortativity(attribute)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AssortativityResponse(attribute=attribute, coefficient=coefficient)


@router.get("/cliques")
async def get_largest_cliques() -> dict[str, Any]:
    _require_loaded()
    cliques = engine.largest_cliques()
    return {"size": len(cliques[0]) if cliques else 0, "cliques": cliques}


# ------------------------------------------------------------------
# Node measures
# ------------------------------------------------------------------

@router.get("/measures")
async def list_measures() -> list[dict[str, Any]]:
    """Registered measures with their source, one-line description and documented params."""
    return engine.measure_registry.list_measures_with_source()


@router.get("/measures/{name}", response_model=MeasureResponse)
async def compute_measure(
    name: str,
    request: Request,
    mode: str | None = None,
    normalized: bool | None = None,
    weight: str | None = None,
    damping: float | None = None,
    loops: bool | None = None,
    top: int = TOP_N,
) -> MeasureResponse:
    """Compute a registered node measure; values are kept for /nodes and /style.

    Query parameters other than the common ones are passed to the measure as
    strings, so custom measures can take their own params (e.g. ``attribute``).
    """
    _require_loaded()
    if engine.measure_registry.get(name) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Measure '{name}' not registered. Available: {engine.measure_registry.list_measures()}",
        )
    params = {"mode": mode, "normalized": normalized, "weight": weight, "damping": damping, "loops": loops}
    for key, value in request.query_params.items():
        if key not in params and key != "top":
            params[key] = value
    try:
        result = engine.compute_measure(name, params, top=top)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if result.get("status") == "error":
        raise HTTPException(status_code=400, detail=result.get("message", "Measure computation failed"))
    return MeasureResponse(**result)


@router.get("/nodes")
async def get_node_table() -> list[dict[str, Any]]:
    """Every node with its attributes, computed measures and community labels."""
    _require_loaded()
    return engine.node_table()


@router.post("/nodes/attributes")
async def attach_node_attributes(request: NodeAttributeRequest) -> dict[str, Any]:
    """Merge a tabular record set onto the nodes by its key column."""
    _require_loaded()
    try:
        return engine.attach_node_attributes(request.records, key=request.key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ------------------------------------------------------------------
# Communities, cores, components
# ------------------------------------------------------------------

@router.post("/communities", response_model=CommunityResponse)
async def detect_communities(request: CommunityRequest) -> CommunityResponse:
    _require_loaded()
    result = engine.detect_communities(request.algorithm, seed=request.seed, resolution=request.resolution)
    return CommunityResponse(
        algorithm=result.algorithm,
        membership={str(n): c for n, c in result.membership.items()},
        sizes=result.sizes,
        modularity=result.modularity,
    )


@router.get("/kcore", response_model=CoreResponse)
async def get_k_core(k: int | None = None) -> CoreResponse:
    """Coreness of every node and the members of the k-core (main core by default)."""
    _require_loaded()
    try:
        return CoreResponse(**engine.k_core(k))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/restrict/largest-component")
async def restrict_to_largest_component() -> dict[str, Any]:
    _require_loaded()
    counts = engine.restrict_to_largest_component()
    return {**counts, "graph_data": engine.get_graph_for_render()}


# ------------------------------------------------------------------
# Paths and neighbourhoods
# ------------------------------------------------------------------

@router.get("/path", response_model=PathResponse)
async def get_shortest_path(source: str, target: str) -> PathResponse:
    _require_loaded()
    _require_node(source)
    _require_node(target)
    path = engine.shortest_path(source, target)
    if path is None:
        raise HTTPException(status_code=404, detail=f"No path from '{source}' to '{target}'.")
    return PathResponse(source=source, target=target, path=path, length=len(path) - 1)


@router.get("/neighbors/{node_id}", response_model=NeighborhoodResponse)
async def get_neighbors(node_id: str, order: int = 1, mode: str = "all") -> NeighborhoodResponse:
    _require_loaded()
    _require_node(node_id)
    try:
        neighbors = engine.neighborhood(node_id, order=order, mode=mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return NeighborhoodResponse(node_id=node_id, order=order, neighbors=neighbors)


# ------------------------------------------------------------------
# POST /style
# ------------------------------------------------------------------

@router.post("/style")
async def apply_style(request: StyleRequest) -> dict[str, Any]:
    """Attach size/color/width attributes for rendering and return the styled graph."""
    _require_loaded()
    try:
        return engine.apply_style(**request.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ------------------------------------------------------------------
# POST /reset
# ------------------------------------------------------------------

@router.post("/reset")
async def reset_network() -> dict[str, Any]:
    """Restore the network as loaded and clear the analysis history."""
    _require_loaded()

    engine.reset()
    engine.analysis_log.clear()

    return engine.get_graph_for_render()


# ------------------------------------------------------------------
# GET /history
# ------------------------------------------------------------------

@router.get("/history")
async def get_history() -> list[dict[str, Any]]:
    """Return the analysis history."""
    return engine.analysis_log.get_history()
