"""
Svelte generator.

Emits a Svelte 4 component. Inputs become ``export let`` props; event props
are dispatched as component events.
"""

from __future__ import annotations

from ..core.ir import FileKind, GeneratedFile
from ..core.token_transformer import TokenStyle
from .base import GeneratorCapabilities, render
from .common import (
    WebGenerator,
    event_name,
    inactive_expression,
    scoped_value,
    selection_literal,
    states_literal,
    ts_type,
)
from .view import ComponentView

TEMPLATE = """\
<!-- {{ view.name }}, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit. -->
<script lang="ts">
{% if events %}
  import { createEventDispatcher } from "svelte";
{% endif %}
  import { FLOOR, TABLE, resolveStyles, withFloor } from "./{{ view.name }}.styles";
  import "./tokens.css";

{% for item in inputs %}
  export let {{ item.name }}: {{ types[item.name] }}{% if item.has_default %} = {{ item.default | js }}{% elif not item.required %} | undefined = undefined{% endif %};
{% endfor %}
{% if events %}

  const dispatch = createEventDispatcher<{ {% for event in events %}{{ event }}: void; {% endfor %}}>();
{% endif %}

  $: resolved = resolveStyles(TABLE, {{ selection }}, {{ states }});
  $: style = Object.entries(withFloor({ ...resolved.tokens }, FLOOR))
    .map(([prop, value]) => `${prop}: ${value}`)
    .join("; ");
  $: inactive = {{ inactive }};
{% if view.activate_action %}

  function activate() {
    if (!inactive) dispatch({{ emitted[view.activate_action] | js }});
  }
{% endif %}
{% if view.key_handlers %}

  function onKeydown(event: KeyboardEvent) {
    if (inactive) return;
    switch (event.key) {
{% for handler in view.key_handlers %}
      case {{ handler.dom_key | js }}:
        event.preventDefault();
        dispatch({{ emitted[handler.action] | js }});
        break;
{% endfor %}
    }
  }
{% endif %}
</script>

<{{ view.element }}
{% for attr in attributes %}
  {{ attr }}
{% endfor %}
>
{% for item in inputs if item.is_node %}
  {{ "{" ~ item.name ~ "}" }}
{% endfor %}
{% for slot in view.named_slots %}
  <slot name="{{ slot.name }}" />
{% endfor %}
{% if view.default_slot %}
  <slot />
{% endif %}
</{{ view.element }}>
{% if focus_css %}

<style>
  :global({{ focus_selector }}) {
    outline: 2px solid currentColor;
    outline-offset: 2px;
  }
</style>
{% endif %}
"""


class SvelteGenerator(WebGenerator):
    """Svelte 4 component (TypeScript)."""

    platform = "svelte"
    version = "1.0.0"

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="Svelte",
            description="Svelte component with reactive token styles",
            file_extension=".svelte",
            token_style=TokenStyle.CSS_VARIABLES,
        )

    def root_attributes(self, view: ComponentView) -> list[str]:
        attributes: list[str] = []
        if view.element == "button":
            attributes.append('type="button"')
        attributes.append(f'class={{["{view.root_class}", ...resolved.classes].join(" ")}}')
        attributes.append("style={style}")
        for name, expression in view.static_attributes(self.attribute_expression).items():
            if name != "tabindex":
                attributes.append(f"{name}={expression}")
        for attr in view.scoped_aria:
            attributes.append(f"{attr.name}={{{scoped_value(view, attr)}}}")
        if view.needs_tabindex:
            attributes.append("tabindex={inactive ? -1 : 0}")
        if view.native_focusable and view.disabling_states:
            attributes.append("disabled={inactive}")
        if view.activate_action:
            attributes.append("on:click={activate}")
        if view.key_handlers:
            attributes.append("on:keydown={onKeydown}")
        return attributes

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        inputs = [item for item in view.inputs if not item.is_event]
        emitted = {item.name: event_name(item.name) for item in view.events}
        component = render(
            TEMPLATE,
            view=view,
            inputs=inputs,
            types={item.name: ts_type(item) for item in inputs},
            events=[emitted[item.name] for item in view.events],
            emitted=emitted,
            selection=selection_literal(view),
            states=states_literal(view),
            inactive=inactive_expression(view),
            attributes=self.root_attributes(view),
            focus_css=self.focus_css(view),
            focus_selector=f".{view.root_class}:focus-visible",
        )
        return [
            GeneratedFile(path=f"{view.name}.svelte", content=component, kind=FileKind.COMPONENT),
            self.styles_module(view),
        ]
