"""
React generator.

Emits a TypeScript function component. Variant axes and states become
props with their defaults; slots become ``children`` plus named ReactNode
props.
"""

from __future__ import annotations

from ..core.ir import FileKind, GeneratedFile
from ..core.token_transformer import TokenStyle
from .base import GeneratorCapabilities, render
from .common import WebGenerator, inactive_expression, scoped_value, selection_literal, states_literal, ts_type
from .view import ComponentView

TEMPLATE = """\
// {{ view.name }}, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit.
import type { CSSProperties{% if view.key_handlers %}, KeyboardEvent{% endif %}{% if uses_nodes %}, ReactNode{% endif %} } from "react";
import { FLOOR, TABLE, resolveStyles, withFloor } from "./{{ view.name }}.styles";
import "./tokens.css";
{% if focus_css %}
import "./{{ view.name }}.css";
{% endif %}

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
}: {{ view.name }}Props) {
  const { classes, tokens } = resolveStyles(TABLE, {{ selection }}, {{ states }});
  const style = withFloor({ ...tokens }, FLOOR) as CSSProperties;
  const inactive = {{ inactive }};
{% if view.key_handlers %}

  const handleKeyDown = (event: KeyboardEvent<HTMLElement>) => {
    if (inactive) return;
    switch (event.key) {
{% for handler in view.key_handlers %}
      case {{ handler.dom_key | js }}:
        event.preventDefault();
        {{ handler.action }}?.();
        break;
{% endfor %}
    }
  };
{% endif %}

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


class ReactGenerator(WebGenerator):
    """React function component (TypeScript + JSX)."""

    platform = "react"
    version = "1.0.0"
    camel_properties = True

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="React",
            description="TypeScript function component with inline token styles",
            file_extension=".tsx",
            token_style=TokenStyle.CSS_VARIABLES,
        )

    def root_attributes(self, view: ComponentView) -> list[str]:
        attributes: list[str] = []
        if view.element == "button":
            attributes.append('type="button"')
        attributes.append(f'className={{["{view.root_class}", ...classes].join(" ")}}')
        attributes.append("style={style}")
        for name, expression in view.static_attributes(self.attribute_expression).items():
            if name != "tabindex":
                attributes.append(f"{name}={expression}")
        for attr in view.scoped_aria:
            attributes.append(f"{attr.name}={{{scoped_value(view, attr)}}}")
        if view.needs_tabindex:
            attributes.append("tabIndex={inactive ? -1 : 0}")
        if view.native_focusable and view.disabling_states:
            attributes.append("disabled={inactive}")
        if view.activate_action:
            attributes.append(f"onClick={{inactive ? undefined : {view.activate_action}}}")
        if view.key_handlers:
            attributes.append("onKeyDown={handleKeyDown}")
        return attributes

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        focus_css = self.focus_css(view)
        uses_nodes = bool(view.slots) or any(item.is_node for item in view.inputs)
        component = render(
            TEMPLATE,
            view=view,
            types={item.name: ts_type(item, node_type="ReactNode") for item in view.inputs},
            uses_nodes=uses_nodes,
            focus_css=focus_css,
            selection=selection_literal(view),
            states=states_literal(view),
            inactive=inactive_expression(view),
            attributes=self.root_attributes(view),
        )
        files = [
            GeneratedFile(path=f"{view.name}.tsx", content=component, kind=FileKind.COMPONENT),
            self.styles_module(view),
        ]
        if focus_css:
            files.append(GeneratedFile(path=f"{view.name}.css", content=focus_css, kind=FileKind.STYLES))
        return files
