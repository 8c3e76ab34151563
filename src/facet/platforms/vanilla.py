"""
Vanilla generator.

Emits a framework-free custom element (plain ES module) with a shadow root.
Inputs are reflected from attributes; event props are dispatched as
composed CustomEvents.
"""

from __future__ import annotations

import json

from ..core.ir import FileKind, GeneratedFile, PropType
from ..core.token_transformer import TokenStyle
from .base import GeneratorCapabilities, render
from .common import (
    WebGenerator,
    event_name,
    inactive_expression,
    selection_literal,
    state_condition,
    states_literal,
)
from .view import AriaView, ComponentView, InputView, kebab_case

TEMPLATE = """\
// <{{ view.tag }}>, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit.
import { FLOOR, TABLE, resolveStyles, withFloor } from "./{{ view.name }}.styles.js";

const TEMPLATE = document.createElement("template");
TEMPLATE.innerHTML = `
  <style>
    :host {
      display: inline-block;
    }
{% if focus_css %}
{{ focus_css | indent(4, first=true) }}
{% endif %}
  </style>
  <{{ view.element }} class="{{ view.root_class }}" part="root"{% if view.element == "button" %} type="button"{% endif %}>
{% for item in inputs if item.is_node %}
    <span data-prop="{{ item.name }}"></span>
{% endfor %}
{% for slot in view.named_slots %}
    <slot name="{{ slot.name }}"></slot>
{% endfor %}
{% if view.default_slot %}
    <slot></slot>
{% endif %}
  </{{ view.element }}>
`;

export class {{ class_name }} extends HTMLElement {
  static get observedAttributes() {
    return {{ observed | js }};
  }

  constructor() {
    super();
    this.attachShadow({ mode: "open" }).appendChild(TEMPLATE.content.cloneNode(true));
    this.root = this.shadowRoot.querySelector(".{{ view.root_class }}");
{% if view.activate_action %}
    this.root.addEventListener("click", () => this.activate());
{% endif %}
{% if view.key_handlers %}
    this.root.addEventListener("keydown", (event) => this.onKeydown(event));
{% endif %}
  }

  connectedCallback() {
    this.update();
  }

  attributeChangedCallback() {
    this.update();
  }
{% for item in inputs %}

  get {{ item.name }}() {
    {{ getters[item.name] }}
  }
{% endfor %}

  get inactive() {
    return {{ inactive }};
  }
{% if view.activate_action %}

  activate() {
    if (this.inactive) return;
    this.emit({{ emitted[view.activate_action] | js }});
  }
{% endif %}
{% if view.key_handlers %}

  onKeydown(event) {
    if (this.inactive) return;
    switch (event.key) {
{% for handler in view.key_handlers %}
      case {{ handler.dom_key | js }}:
        event.preventDefault();
        this.emit({{ emitted[handler.action] | js }});
        break;
{% endfor %}
    }
  }
{% endif %}
{% if emitted %}

  emit(name) {
    this.dispatchEvent(new CustomEvent(name, { bubbles: true, composed: true }));
  }
{% endif %}

  setAttr(name, value) {
    if (value === undefined || value === null) this.root.removeAttribute(name);
    else this.root.setAttribute(name, String(value));
  }

  update() {
    const { classes, tokens } = resolveStyles(TABLE, {{ selection }}, {{ states }});
    this.root.className = [{{ view.root_class | js }}, ...classes].join(" ");
    this.root.removeAttribute("style");
    for (const [prop, value] of Object.entries(withFloor({ ...tokens }, FLOOR))) {
      this.root.style.setProperty(prop, value);
    }
{% for line in updates %}
    {{ line }}
{% endfor %}
{% for item in inputs if item.is_node %}
    this.root.querySelector('[data-prop="{{ item.name }}"]').textContent = this.{{ item.name }} ?? "";
{% endfor %}
  }
}

if (!customElements.get("{{ view.tag }}")) {
  customElements.define("{{ view.tag }}", {{ class_name }});
}
"""


def _getter(item: InputView) -> str:
    attribute = kebab_case(item.name)
    if item.type == PropType.BOOLEAN:
        if item.default:
            return f'return this.getAttribute("{attribute}") !== "false";'
        return f'return this.hasAttribute("{attribute}");'
    if item.type == PropType.NUMBER:
        fallback = item.default if item.has_default else "undefined"
        return f'return this.hasAttribute("{attribute}") ? Number(this.getAttribute("{attribute}")) : {fallback};'
    fallback = json.dumps(item.default) if item.has_default else "null"
    return f'return this.getAttribute("{attribute}") ?? {fallback};'


class VanillaGenerator(WebGenerator):
    """Framework-free custom element."""

    platform = "vanilla"
    version = "1.0.0"
    typescript = False
    styles_extension = ".js"

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="Vanilla",
            description="Custom element (ES module, shadow DOM)",
            file_extension=".js",
            token_style=TokenStyle.CSS_VARIABLES,
        )

    def attribute_expression(self, attr: AriaView) -> str:
        return attr.value if attr.literal else f"this.{attr.prop}"

    def updates(self, view: ComponentView) -> list[str]:
        """Statements that keep the root's attributes in sync."""
        lines: list[str] = []
        if view.role_attribute and view.role:
            lines.append(f'this.setAttr("role", "{view.role}");')
        for attr in view.static_aria:
            value = f'"{attr.value}"' if attr.literal else f"this.{attr.prop}"
            lines.append(f'this.setAttr("{attr.name}", {value});')
        for attr in view.scoped_aria:
            active = state_condition(view, attr.state, f"this.{attr.state}")
            value = f'"{attr.value}"' if attr.literal else f"this.{attr.prop}"
            lines.append(f'this.setAttr("{attr.name}", {active} ? {value} : null);')
        if view.needs_tabindex:
            lines.append("this.root.tabIndex = this.inactive ? -1 : 0;")
        if view.native_focusable and view.disabling_states:
            lines.append("this.root.disabled = this.inactive;")
        return lines

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        inputs = [item for item in view.inputs if not item.is_event]
        emitted = {item.name: event_name(item.name) for item in view.events}

        def this(name: str) -> str:
            return f"this.{name}"

        component = render(
            TEMPLATE,
            view=view,
            class_name=f"Facet{view.name}",
            inputs=inputs,
            observed=[kebab_case(item.name) for item in inputs],
            getters={item.name: _getter(item) for item in inputs},
            emitted=emitted,
            selection=selection_literal(view, this),
            states=states_literal(view, this),
            inactive=inactive_expression(view, this),
            updates=self.updates(view),
            focus_css=self.focus_css(view).rstrip("\n"),
        )
        return [
            GeneratedFile(path=f"{view.tag}.js", content=component, kind=FileKind.COMPONENT),
            self.styles_module(view),
        ]
