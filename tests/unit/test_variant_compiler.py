"""Tests for variant compilation and resolution order."""

import pytest

from facet.core.errors import InvalidSelectionError, MissingDefaultVariantError
from facet.core.ir import ComponentSpec
from facet.core.variant_compiler import compile_variants


def _csm(**fields) -> ComponentSpec:
    return ComponentSpec.model_validate({"id": "widget", "version": "1.0.0", **fields})


class TestResolutionOrder:
    """Base, axes, compound rules, then states."""

    def test_inline_button(self):
        resolver = compile_variants(
            _csm(
                base=["inline-flex"],
                variants=[{"name": "size", "default": "md", "values": {"md": ["h-12"], "lg": ["h-14"]}}],
                states=[{"name": "disabled", "styles": ["opacity-50"], "interactive": False}],
            )
        )
        assert resolver.resolve({"size": "lg"}, {"disabled": True}) == ("inline-flex", "h-14", "opacity-50")

    def test_defaults(self, resolver):
        assert resolver.resolve() == ("inline-flex", "items-center", "h-12", "bg-primary")

    def test_compound_and_state(self, resolver):
        result = resolver.resolve({"size": "lg", "intent": "ghost"}, {"disabled": True})
        assert result == ("inline-flex", "items-center", "h-14", "bg-transparent", "ring-1", "opacity-50")

    def test_compound_needs_every_condition(self, resolver):
        assert "ring-1" not in resolver.resolve({"size": "lg"})
        assert resolver.matching_compounds({"size": "lg", "intent": "ghost"}) == [0]

    def test_inactive_states_contribute_nothing(self, resolver):
        assert resolver.resolve(states={"disabled": False, "pressed": None}) == resolver.resolve()

    def test_pure(self, resolver):
        selection = {"size": "lg", "intent": "ghost"}
        assert resolver.resolve(selection, {"pressed": True}) == resolver.resolve(selection, {"pressed": True})


class TestOrderedSet:
    def test_duplicate_keeps_last_position(self):
        resolver = compile_variants(
            _csm(
                base=["p-2", "flex"],
                variants=[{"name": "density", "default": "compact", "values": {"compact": ["p-2"]}}],
            )
        )
        assert resolver.resolve() == ("flex", "p-2")

    def test_later_compound_rule_wins(self):
        resolver = compile_variants(
            _csm(
                variants=[
                    {"name": "size", "default": "lg", "values": {"lg": []}},
                    {"name": "tone", "default": "danger", "values": {"danger": []}},
                ],
                compound_variants=[
                    {"when": {"size": "lg"}, "styles": ["text-red", "shadow"], "tokens": {"color": "color.red"}},
                    {"when": {"tone": "danger"}, "styles": ["text-blue"], "tokens": {"color": "color.blue"}},
                ],
            )
        )
        assert resolver.resolve() == ("text-red", "shadow", "text-blue")
        assert resolver.resolve_bindings() == {"color": "color.blue"}


class TestBindings:
    def test_later_blocks_override(self, resolver):
        bindings = resolver.resolve_bindings({"size": "lg", "intent": "ghost"})
        assert bindings == {
            "color": "color.primary",
            "background-color": "color.surface",
            "padding-inline": "spacing.4",
            "height": "size.14",
        }

    def test_defaults(self, resolver):
        bindings = resolver.resolve_bindings()
        assert bindings["background-color"] == "color.primary"
        assert bindings["height"] == "size.12"


class TestStates:
    def test_enum_state(self):
        resolver = compile_variants(
            _csm(
                base=["box"],
                states=[
                    {
                        "name": "tone",
                        "kind": "enum",
                        "styles": ["ring"],
                        "values": {"info": ["text-blue"], "warn": ["text-amber"]},
                    }
                ],
            )
        )
        assert resolver.resolve(states={"tone": "warn"}) == ("box", "ring", "text-amber")

    def test_exclusive_states(self):
        resolver = compile_variants(
            _csm(
                states=[
                    {"name": "loading", "styles": ["cursor-wait"], "exclusive_with": ["done"]},
                    {"name": "done", "styles": ["text-green"]},
                ]
            )
        )
        with pytest.raises(InvalidSelectionError, match="cannot be active"):
            resolver.resolve(states={"loading": True, "done": True})

    def test_boolean_state_rejects_string(self, resolver):
        with pytest.raises(InvalidSelectionError, match="boolean state"):
            resolver.resolve(states={"disabled": "yes"})


class TestInvalidSelection:
    def test_unknown_value(self, resolver):
        with pytest.raises(InvalidSelectionError, match="'xl' is not a value of variant axis 'size'"):
            resolver.resolve({"size": "xl"})

    def test_unknown_axis(self, resolver):
        with pytest.raises(InvalidSelectionError, match="unknown variant axes"):
            resolver.resolve({"colour": "red"})

    def test_unknown_state(self, resolver):
        with pytest.raises(InvalidSelectionError, match="unknown states"):
            resolver.resolve(states={"hovered": True})


class TestCompile:
    def test_missing_default(self):
        csm = _csm(variants=[{"name": "size", "values": {"md": ["h-12"]}}])
        with pytest.raises(MissingDefaultVariantError) as exc_info:
            compile_variants(csm)
        assert exc_info.value.axis == "size"
        assert "widget" in str(exc_info.value)

    def test_combinations_in_declaration_order(self, resolver):
        assert resolver.combinations() == [
            {"size": "md", "intent": "primary"},
            {"size": "md", "intent": "ghost"},
            {"size": "lg", "intent": "primary"},
            {"size": "lg", "intent": "ghost"},
        ]

    def test_no_axes(self):
        assert compile_variants(_csm()).combinations() == [{}]

    def test_identifiers(self, resolver):
        assert resolver.identifiers()[:3] == ("inline-flex", "items-center", "h-12")
        assert "opacity-50" in resolver.identifiers()


class TestTable:
    def test_shape(self, resolver):
        table = resolver.to_table()
        assert set(table) == {"base", "axes", "compounds", "states"}
        assert table["base"]["styles"] == ["inline-flex", "items-center"]
        assert [(a["name"], a["default"]) for a in table["axes"]] == [("size", "md"), ("intent", "primary")]
        assert table["compounds"][0]["when"] == {"size": "lg", "intent": "ghost"}
        assert [s["name"] for s in table["states"]] == ["pressed", "disabled"]

    def test_token_and_property_mapping(self, resolver):
        table = resolver.to_table(token_ref=lambda name: f"ref:{name}", property_name=str.upper)
        assert table["base"]["tokens"]["COLOR"] == "ref:color.on-primary"
