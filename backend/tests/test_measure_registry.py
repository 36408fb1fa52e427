"""Tests for MeasureRegistry, MeasureContext, and @register_measure."""

import sys
import types

import networkx as nx

from netlab.engine.measure_registry import (
    MeasureContext,
    MeasureRegistry,
    describe_measure,
    register_measure,
)


# --- Helper: decorated functions ---

@register_measure
def dummy_measure(ctx: MeasureContext) -> dict:
    return {n: 1.0 for n in ctx.graph.nodes}


@register_measure
def another_measure(ctx: MeasureContext) -> dict:
    return {}


def not_a_measure(ctx: MeasureContext) -> dict:
    """This function is NOT decorated, so it should NOT be registered."""
    return {}


# --- Tests ---


class TestRegisterMeasureDecorator:
    def test_marks_is_measure(self):
        assert getattr(dummy_measure, "_is_measure", False) is True

    def test_marks_measure_name(self):
        assert getattr(dummy_measure, "_measure_name", None) == "dummy_measure"

    def test_undecorated_has_no_marker(self):
        assert getattr(not_a_measure, "_is_measure", False) is False


class TestMeasureContext:
    def test_fields(self):
        g = nx.Graph()
        ctx = MeasureContext(graph=g, params={"mode": "in"})
        assert ctx.params["mode"] == "in"
        assert isinstance(ctx.graph, nx.Graph)

    def test_default_params_empty(self):
        ctx = MeasureContext(graph=nx.Graph())
        assert ctx.params == {}

    def test_param_falls_back_to_default(self):
        ctx = MeasureContext(graph=nx.Graph(), params={"mode": None, "normalized": False})
        assert ctx.param("mode", "all") == "all"
        assert ctx.param("missing", 3) == 3
        # A falsy but explicit value is kept
        assert ctx.param("normalized", True) is False


class TestMeasureRegistry:
    def test_register_and_get(self):
        registry = MeasureRegistry()
        registry.register("my_measure", dummy_measure)
        assert registry.get("my_measure") is dummy_measure

    def test_get_unregistered_returns_none(self):
        registry = MeasureRegistry()
        assert registry.get("nonexistent") is None

    def test_list_measures_empty(self):
        registry = MeasureRegistry()
        assert registry.list_measures() == []

    def test_register_from_module(self):
        mod = types.ModuleType("fake_module")
        mod.dummy_measure = dummy_measure
        mod.another_measure = another_measure
        mod.not_a_measure = not_a_measure

        registry = MeasureRegistry()
        registry.register_from_module(mod)

        assert registry.get("dummy_measure") is dummy_measure
        assert registry.get("another_measure") is another_measure
        assert registry.get("not_a_measure") is None

    def test_list_measures_sorted(self):
        mod = types.ModuleType("fake_module")
        mod.dummy_measure = dummy_measure
        mod.another_measure = another_measure

        registry = MeasureRegistry()
        registry.register_from_module(mod)

        assert registry.list_measures() == ["another_measure", "dummy_measure"]

    def test_sources_and_override(self):
        builtin = types.ModuleType("builtin_measures")
        builtin.dummy_measure = dummy_measure

        @register_measure
        def dummy_override(ctx: MeasureContext) -> dict:
            return {n: 2.0 for n in ctx.graph.nodes}
        dummy_override._measure_name = "dummy_measure"

        custom = types.ModuleType("custom_measures")
        custom.dummy_override = dummy_override

        registry = MeasureRegistry()
        registry.register_from_module(builtin, source="builtin")
        registry.register_from_module(custom, source="custom")

        assert registry.get("dummy_measure") is dummy_override
        assert registry.list_measures_with_source() == [
            {"name": "dummy_measure", "source": "custom", "description": "", "params": []}
        ]

    def test_register_from_imported_module(self):
        mod = types.ModuleType("test_measures")
        mod.dummy_measure = dummy_measure
        mod.not_a_measure = not_a_measure
        sys.modules["test_measures"] = mod
        try:
            import test_measures

            registry = MeasureRegistry()
            registry.register_from_module(test_measures)

            g = nx.path_graph(3)
            assert registry.list_measures() == ["dummy_measure"]
            assert registry.get("dummy_measure")(MeasureContext(graph=g)) == {0: 1.0, 1: 1.0, 2: 1.0}
        finally:
            del sys.modules["test_measures"]


@register_measure
def documented_measure(ctx: MeasureContext) -> dict:
    """Share of ties that point at a chosen group.

    Params:
        attribute (str): Node attribute holding the group. Default 'group',
            matched case-sensitively.
        value (str | None): Group to count. Default None.

    Notes:
        not (a): param line
    """
    return {}


class TestDescribeMeasure:
    def test_description_and_params(self):
        info = describe_measure(documented_measure)
        assert info["description"] == "Share of ties that point at a chosen group."
        assert info["params"] == [
            {
                "name": "attribute",
                "type": "str",
                "description": "Node attribute holding the group. Default 'group', matched case-sensitively.",
            },
            {"name": "value", "type": "str | None", "description": "Group to count. Default None."},
        ]

    def test_undocumented(self):
        assert describe_measure(another_measure) == {"description": "", "params": []}

    def test_listing_carries_descriptions(self):
        registry = MeasureRegistry()
        registry.register("documented_measure", documented_measure, source="custom")
        entry = registry.list_measures_with_source()[0]
        assert entry["source"] == "custom"
        assert [p["name"] for p in entry["params"]] == ["attribute", "value"]
