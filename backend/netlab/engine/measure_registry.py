from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Optional
import inspect
import re

import networkx as nx


@dataclass
class MeasureContext:
    """Context passed to each measure function during computation."""
    graph: nx.Graph
    params: dict[str, Any] = field(default_factory=dict)

    def param(self, name: str, default: Any = None) -> Any:
        value = self.params.get(name)
        return default if value is None else value


MeasureResult = dict[Hashable, float]

# "name (type): text" lines under a "Params:" heading
_PARAM_LINE = re.compile(r"^\s*(\w+)\s*\(([^)]*)\)\s*:\s*(.*)$")


def register_measure(func: Callable) -> Callable:
    """Decorator that marks a function as a registrable node measure."""
    func._is_measure = True
    func._measure_name = func.__name__
    return func


def describe_measure(func: Callable) -> dict[str, Any]:
    """Read a measure's one-line description and documented params from its docstring.

    Params are the ``name (type): text`` lines of a ``Params:`` section, as the
    built-in measures write them.
    """
    doc = inspect.getdoc(func) or ""
    lines = doc.splitlines()
    description = lines[0].strip() if lines else ""
    params: list[dict[str, str]] = []
    in_params = False
    for line in lines[1:]:
        if line.strip() == "Params:":
            in_params = True
            continue
        if not in_params:
            continue
        match = _PARAM_LINE.match(line)
        if match:
            name, kind, text = match.groups()
            params.append({"name": name, "type": kind.strip(), "description": text.strip()})
        elif params and line.startswith(" ") and line.strip():
            # Wrapped continuation of the previous param
            params[-1]["description"] = f"{params[-1]['description']} {line.strip()}"
        elif line.strip():
            in_params = False
    return {"description": description, "params": params}


class MeasureRegistry:
    """Registry for node measure functions that can be looked up by name."""

    def __init__(self) -> None:
        self._measures: dict[str, Callable] = {}
        self._sources: dict[str, str] = {}

    def register(self, name: str, func: Callable, source: str = "builtin") -> None:
        """Register a callable under the given name with a source label."""
        self._measures[name] = func
        self._sources[name] = source

    def register_from_module(self, module: object, source: str = "builtin") -> None:
        """Scan a module for callables marked with @register_measure and register them."""
        for _name, obj in inspect.getmembers(module, callable):
            if getattr(obj, "_is_measure", False):
                measure_name = getattr(obj, "_measure_name", obj.__name__)
                self.register(measure_name, obj, source=source)

    def get(self, name: str) -> Optional[Callable]:
        """Return the measure function registered under name, or None."""
        return self._measures.get(name)

    def list_measures(self) -> list[str]:
        """Return a sorted list of all registered measure names."""
        return sorted(self._measures.keys())

    def list_measures_with_source(self) -> list[dict[str, Any]]:
        """Registered measures, sorted by name, with source label, description and params."""
        return [
            {"name": name, "source": self._sources.get(name, "builtin"), **describe_measure(self._measures[name])}
            for name in self.list_measures()
        ]
