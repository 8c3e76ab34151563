"""
Helpers shared by the script-based generators.

Web targets consume tokens as CSS custom properties and apply resolved token
bindings as inline style declarations. They all ship the same style module:
the resolver table, the contract floor and the resolve function.
"""

from __future__ import annotations

import json

from ..core.ir import FileKind, GeneratedFile, PropType
from ..core.units import px_to_rem
from .base import PlatformGenerator, render, resolver_source
from .view import AriaView, ComponentView, InputView, camel_case

STYLES_MODULE = """\
// {{ view.name }} styles, generated by Facet from {{ view.id }}@{{ view.csm.version }}. Do not edit.
{% if preamble %}
{{ preamble }}
{% endif %}

{{ resolver }}

export const TABLE{% if typescript %}: StyleTable{% endif %} = {{ table | js_block }};

export const FLOOR{% if typescript %}: Record<string, {{ floor_type }}>{% endif %} = {{ floor | js }};
{% if extra %}

{{ extra }}
{% endif %}
"""

FOCUS_RING_CSS = """\
.{{ root_class }}:focus-visible {
  outline: 2px solid currentColor;
  outline-offset: 2px;
}
"""


def event_name(prop: str) -> str:
    """Event prop -> emitted event name (``onPress`` -> ``press``)."""
    if prop.startswith("on") and len(prop) > 2 and prop[2].isupper():
        return prop[2].lower() + prop[3:]
    return prop


def ts_type(item: InputView, node_type: str = "string", event_type: str = "() => void") -> str:
    """TypeScript type for an input."""
    if item.type == PropType.ENUM:
        return " | ".join(json.dumps(v) for v in item.values)
    return {
        PropType.STRING: "string",
        PropType.NUMBER: "number",
        PropType.BOOLEAN: "boolean",
        PropType.NODE: node_type,
        PropType.EVENT: event_type,
    }[item.type]


def state_condition(view: ComponentView, name: str, ref: str) -> str:
    """Expression true while a state is active."""
    if view.is_boolean_state(name):
        return ref
    return f"{ref} != null"


def inactive_expression(view: ComponentView, ref=lambda name: name) -> str:
    """Expression true while any interactivity-removing state is active."""
    parts = [state_condition(view, name, ref(name)) for name in view.disabling_states]
    return " || ".join(parts) if parts else "false"


def selection_literal(view: ComponentView, ref=lambda name: name) -> str:
    """``{ size: size }``-style object literal for the resolver call."""
    items = [f"{item.name}: {ref(item.name)}" for item in view.variant_inputs]
    return "{ " + ", ".join(items) + " }" if items else "{}"


def states_literal(view: ComponentView, ref=lambda name: name) -> str:
    items = [f"{item.name}: {ref(item.name)}" for item in view.state_inputs]
    return "{ " + ", ".join(items) + " }" if items else "{}"


def scoped_value(view: ComponentView, attr: AriaView, ref=lambda name: name, absent: str = "undefined") -> str:
    """Expression for a state-scoped attribute: the value while active, else absent."""
    value = ref(attr.prop) if attr.prop else json.dumps(attr.value)
    return f"{state_condition(view, attr.state, ref(attr.state))} ? {value} : {absent}"


class WebGenerator(PlatformGenerator):
    """Shared behaviour for targets that consume CSS custom properties."""

    typescript = True
    camel_properties = False
    styles_extension = ".ts"

    def styles_path(self, view: ComponentView) -> str:
        return f"{view.name}.styles{self.styles_extension}"

    def floor_styles(self, view: ComponentView) -> dict[str, str]:
        """Contract floor as rem, keyed like the style table."""
        return {
            (camel_case(prop) if self.camel_properties else prop): px_to_rem(dp)
            for prop, dp in sorted(view.floor.items())
        }

    def styles_module(self, view: ComponentView) -> GeneratedFile:
        content = render(
            STYLES_MODULE,
            view=view,
            preamble="",
            resolver=resolver_source(typescript=self.typescript).rstrip("\n"),
            typescript=self.typescript,
            table=view.table(
                token_ref=view.tokens.reference,
                property_name=camel_case if self.camel_properties else None,
            ),
            floor=self.floor_styles(view),
            floor_type="string",
            extra="",
        )
        return GeneratedFile(path=self.styles_path(view), content=content, kind=FileKind.STYLES)

    def focus_css(self, view: ComponentView) -> str:
        """Focus indicator rule, empty when the contract does not ask for one."""
        if not view.focus_visible:
            return ""
        return render(FOCUS_RING_CSS, root_class=view.root_class)
