"""
Vue generator.

Emits a single-file component using ``<script setup lang="ts">``. Event
props become emitted events (``onPress`` -> ``press``), which Vue exposes
back to parents as ``@press`` / ``onPress``.
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
from .view import AriaView, ComponentView

TEMPLATE = """\
<!-- {{ view.name }}, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit. -->
<script setup lang="ts">
import { computed } from "vue";
import { FLOOR, TABLE, resolveStyles, withFloor } from "./{{ view.name }}.styles";
import "./tokens.css";

const props = withDefaults(
  defineProps<{
{% for item in inputs %}
    {{ item.name }}{{ "" if item.required else "?" }}: {{ types[item.name] }};
{% endfor %}
  }>(),
  {
{% for item in inputs if item.has_default %}
    {{ item.name }}: {{ item.default | js }},
{% endfor %}
  },
);
{% if events %}

const emit = defineEmits<{
{% for event in events %}
  (e: {{ event | js }}): void;
{% endfor %}
}>();
{% endif %}

const resolved = computed(() => resolveStyles(TABLE, {{ selection }}, {{ states }}));
const style = computed(() => withFloor({ ...resolved.value.tokens }, FLOOR));
const inactive = computed(() => {{ inactive }});
{% if view.activate_action %}

function activate() {
  if (!inactive.value) emit({{ emitted[view.activate_action] | js }});
}
{% endif %}
{% if view.key_handlers %}

function onKeydown(event: KeyboardEvent) {
  if (inactive.value) return;
  switch (event.key) {
{% for handler in view.key_handlers %}
    case {{ handler.dom_key | js }}:
      event.preventDefault();
      emit({{ emitted[handler.action] | js }});
      break;
{% endfor %}
  }
}
{% endif %}
</script>

<template>
  <{{ view.element }}
{% for attr in attributes %}
    {{ attr }}
{% endfor %}
  >
{% for item in inputs if item.is_node %}
    <span v-text="{{ item.name }}" />
{% endfor %}
{% for slot in view.named_slots %}
    <slot name="{{ slot.name }}" />
{% endfor %}
{% if view.default_slot %}
    <slot />
{% endif %}
  </{{ view.element }}>
</template>
{% if focus_css %}

<style scoped>
{{ focus_css }}</style>
{% endif %}
"""


class VueGenerator(WebGenerator):
    """Vue 3 single-file component."""

    platform = "vue"
    version = "1.0.0"

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="Vue",
            description="Vue 3 single-file component (script setup, TypeScript)",
            file_extension=".vue",
            token_style=TokenStyle.CSS_VARIABLES,
        )

    def attribute_expression(self, attr: AriaView) -> str:
        return attr.value if attr.literal else attr.prop

    def root_attributes(self, view: ComponentView) -> list[str]:
        attributes: list[str] = []
        if view.element == "button":
            attributes.append('type="button"')
        attributes.append(f":class=\"['{view.root_class}', ...resolved.classes]\"")
        attributes.append(':style="style"')
        if view.role_attribute and view.role:
            attributes.append(f'role="{view.role}"')
        for attr in view.static_aria:
            if attr.literal:
                attributes.append(f'{attr.name}="{attr.value}"')
            else:
                attributes.append(f':{attr.name}="{attr.prop}"')
        for attr in view.scoped_aria:
            expression = scoped_value(view, attr).replace('"', "'")
            attributes.append(f':{attr.name}="{expression}"')
        if view.needs_tabindex:
            attributes.append(':tabindex="inactive ? -1 : 0"')
        if view.native_focusable and view.disabling_states:
            attributes.append(':disabled="inactive"')
        if view.activate_action:
            attributes.append('@click="activate"')
        if view.key_handlers:
            attributes.append('@keydown="onKeydown"')
        return attributes

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        inputs = [item for item in view.inputs if not item.is_event]
        emitted = {item.name: event_name(item.name) for item in view.events}
        focus_css = self.focus_css(view)
        component = render(
            TEMPLATE,
            view=view,
            inputs=inputs,
            types={item.name: ts_type(item) for item in inputs},
            events=[emitted[item.name] for item in view.events],
            emitted=emitted,
            selection=selection_literal(view, lambda name: f"props.{name}"),
            states=states_literal(view, lambda name: f"props.{name}"),
            inactive=inactive_expression(view, lambda name: f"props.{name}"),
            attributes=self.root_attributes(view),
            focus_css=focus_css,
        )
        return [
            GeneratedFile(path=f"{view.name}.vue", content=component, kind=FileKind.COMPONENT),
            self.styles_module(view),
        ]
