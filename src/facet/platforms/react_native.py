"""
React Native generator.

Emits a function component over ``Pressable`` (or ``View`` when the
component is not interactive). React Native has no class names: resolved
identifiers are looked up in a generated ``STYLES`` map (see
``native_styles``) and merged in resolver order, then token bindings are
looked up per theme from the native token module, then the contract floor
applies. Lengths are whole dp numbers.

React Native has no ``aria-pressed``; toggle state is exposed through
``aria-checked``, which screen readers announce as on/off for a button role.

React Native has no focus-ring primitive and no arbitrary key events, so a
contract requiring either is refused with CapabilityGapError.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace

from ..core.errors import CapabilityGapError
from ..core.ir import ComponentSpec, FileKind, GeneratedFile
from ..core.token_transformer import TokenStyle
from .base import Capability, GeneratorCapabilities, PlatformGenerator, render, resolver_source
from .common import STYLES_MODULE, inactive_expression, selection_literal, state_condition, states_literal, ts_type
from .native_styles import native_styles
from .view import AriaView, ComponentView, camel_case

logger = logging.getLogger(__name__)

# aria-* props accepted by React Native core components
SUPPORTED_ARIA = frozenset(
    {
        "aria-busy",
        "aria-checked",
        "aria-disabled",
        "aria-expanded",
        "aria-hidden",
        "aria-label",
        "aria-labelledby",
        "aria-live",
        "aria-modal",
        "aria-selected",
        "aria-valuemax",
        "aria-valuemin",
        "aria-valuenow",
        "aria-valuetext",
    }
)

# Contract attribute -> React Native prop that carries it
ARIA_ALIASES = {"aria-pressed": "aria-checked"}

NATIVE_STYLE = """\
export type NativeStyle = Record<string, string | number>;

export const STYLES: Record<string, NativeStyle> = {{ styles | js_block }};
{% if unmapped %}
// Supplied by the application through registerStyles: {{ unmapped | join(", ") }}
{% endif %}

const registry: Record<string, NativeStyle> = {};

export function registerStyles(styles: Record<string, NativeStyle>): void {
  Object.assign(registry, styles);
}

// Identifier styles in resolver order, token values of the active theme, then the contract floor.
export function nativeStyle(
  classes: string[],
  tokens: Record<string, string>,
  theme: ThemeName,
  floor: Record<string, number>,
): NativeStyle {
  const values = themes[theme] as NativeStyle;
  const style: NativeStyle = {};
  for (const name of classes) {
    const entry = registry[name] ?? STYLES[name];
    if (entry) {
      Object.assign(style, entry);
    } else if (__DEV__) {
      console.warn(`Facet: no native style for "${name}"`);
    }
  }
  for (const [prop, token] of Object.entries(tokens)) {
    style[prop] = values[token];
  }
  for (const [prop, min] of Object.entries(floor)) {
    const current = style[prop];
    style[prop] = typeof current === "number" ? Math.max(min, current) : min;
  }
  return style;
}"""

TEMPLATE = """\
// {{ view.name }}, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit.
{% if uses_nodes %}
import type { ReactNode } from "react";
{% endif %}
import { {{ view.element }} } from "react-native";
import { FLOOR, TABLE, nativeStyle, resolveStyles } from "./{{ view.name }}.styles";
import { defaultTheme, type ThemeName } from "./tokens";

/** {{ view.description }} */
export interface {{ view.name }}Props {
{% for item in view.inputs %}
{% if item.description %}
  /** {{ item.description }} */
{% endif %}
  {{ item.name }}{{ "" if item.required else "?" }}: {{ types[item.name] }};
{% endfor %}
{% if view.default_slot %}
  children{{ "" if view.default_slot.required else "?" }}: ReactNode;
{% endif %}
{% for slot in view.named_slots %}
  {{ slot.name }}{{ "" if slot.required else "?" }}: ReactNode;
{% endfor %}
  theme?: ThemeName;
}

export function {{ view.name }}({
{% for item in view.inputs %}
  {{ item.name }}{% if item.has_default %} = {{ item.default | js }}{% endif %},
{% endfor %}
{% if view.default_slot %}
  children,
{% endif %}
{% for slot in view.named_slots %}
  {{ slot.name }},
{% endfor %}
  theme = defaultTheme,
}: {{ view.name }}Props) {
  const { classes, tokens } = resolveStyles(TABLE, {{ selection }}, {{ states }});
  const inactive = {{ inactive }};

  return (
    <{{ view.element }}
{% for attr in attributes %}
      {{ attr }}
{% endfor %}
    >
{% for item in view.props if item.is_node %}
      {{ "{" ~ item.name ~ "}" }}
{% endfor %}
{% for slot in view.named_slots %}
      {{ "{" ~ slot.name ~ "}" }}
{% endfor %}
{% if view.default_slot %}
      {children}
{% endif %}
    </{{ view.element }}>
  );
}

export default {{ view.name }};
"""


def _native_literal(value: str) -> str:
    if value in ("true", "false"):
        return value
    return json.dumps(value)


class ReactNativeGenerator(PlatformGenerator):
    """React Native function component."""

    platform = "react-native"
    version = "1.0.0"

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="React Native",
            description="React Native function component with per-theme token lookup",
            file_extension=".tsx",
            token_style=TokenStyle.NATIVE,
            units="dp",
            features=frozenset({Capability.ARIA, Capability.NAMED_SLOTS}),
            aria=SUPPORTED_ARIA | frozenset(ARIA_ALIASES),
        )

    def check_contract(self, csm: ComponentSpec) -> None:
        super().check_contract(csm)
        names = {attr.name for attr in csm.accessibility.aria}
        for name, alias in ARIA_ALIASES.items():
            # Both would be written to the same prop
            if name in names and alias in names:
                raise CapabilityGapError(self.platform, csm.id, f"{name} with {alias}")

    def prepare(self, view: ComponentView) -> ComponentView:
        # Pressable is focusable and fires onPress for Enter and Space
        interactive = view.interactive or view.activate_action is not None
        return replace(
            view,
            element="Pressable" if interactive else "View",
            native_focusable=interactive,
            role_attribute=view.role is not None,
            needs_tabindex=False,
            key_handlers=[],
        )

    def attribute_expression(self, attr: AriaView) -> str:
        if attr.literal:
            value = _native_literal(attr.value)
            return value if value.startswith('"') else "{" + value + "}"
        return "{" + attr.prop + "}"

    def attribute_names(self, view: ComponentView) -> dict[str, str]:
        return {attr.name: ARIA_ALIASES[attr.name] for attr in view.aria if attr.name in ARIA_ALIASES}

    def root_attributes(self, view: ComponentView) -> list[str]:
        attributes = ["style={nativeStyle(classes, tokens, theme, FLOOR)}"]
        for name, expression in view.static_attributes(self.attribute_expression).items():
            attributes.append(f"{ARIA_ALIASES.get(name, name)}={expression}")
        for attr in view.scoped_aria:
            active = state_condition(view, attr.state, attr.state)
            value = attr.prop if attr.prop else _native_literal(attr.value)
            attributes.append(f"{ARIA_ALIASES.get(attr.name, attr.name)}={{{active} ? {value} : undefined}}")
        if view.native_focusable and view.disabling_states:
            attributes.append("disabled={inactive}")
        if view.activate_action:
            attributes.append(f"onPress={{inactive ? undefined : {view.activate_action}}}")
        return attributes

    def floor_styles(self, view: ComponentView) -> dict[str, int]:
        return {camel_case(prop): dp for prop, dp in sorted(view.floor.items())}

    def styles_module(self, view: ComponentView) -> GeneratedFile:
        styles, unmapped = native_styles(view.resolver.identifiers())
        if unmapped:
            logger.debug("%s: identifiers left to registerStyles: %s", view.id, ", ".join(unmapped))
        content = render(
            STYLES_MODULE,
            view=view,
            preamble='import { themes, type ThemeName } from "./tokens";',
            resolver=resolver_source(typescript=True, with_floor=False).rstrip("\n"),
            typescript=True,
            table=view.table(property_name=camel_case),
            floor=self.floor_styles(view),
            floor_type="number",
            extra=render(NATIVE_STYLE, styles=styles, unmapped=unmapped),
        )
        return GeneratedFile(path=f"{view.name}.styles.ts", content=content, kind=FileKind.STYLES)

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        uses_nodes = bool(view.slots) or any(item.is_node for item in view.inputs)
        component = render(
            TEMPLATE,
            view=view,
            types={item.name: ts_type(item, node_type="ReactNode") for item in view.inputs},
            uses_nodes=uses_nodes,
            selection=selection_literal(view),
            states=states_literal(view),
            inactive=inactive_expression(view),
            attributes=self.root_attributes(view),
        )
        return [
            GeneratedFile(path=f"{view.name}.tsx", content=component, kind=FileKind.COMPONENT),
            self.styles_module(view),
        ]
