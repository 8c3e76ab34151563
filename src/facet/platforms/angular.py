"""
Angular generator.

Emits a standalone component with an inline template and an SCSS sheet.
The sheet declares the component's token custom properties on ``:host``
from the SCSS token map, so the component renders without the global
token stylesheet.
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
// {{ view.name }}, generated by Facet from {{ view.id }}@{{ view.csm.version }} (tokens {{ view.tokens.revision }}). Do not edit.
import { NgClass, NgStyle } from "@angular/common";
import {
  ChangeDetectionStrategy,
  Component,
{% if events %}
  EventEmitter,
{% endif %}
  Input,
{% if events %}
  Output,
{% endif %}
} from "@angular/core";
import { FLOOR, TABLE, resolveStyles, withFloor } from "./{{ view.slug }}.styles";

@Component({
  selector: "{{ view.tag }}",
  standalone: true,
  imports: [NgClass, NgStyle],
  changeDetection: ChangeDetectionStrategy.OnPush,
  styleUrls: ["./{{ view.slug }}.component.scss"],
  template: `
    <{{ view.element }}
{% for attr in attributes %}
      {{ attr }}
{% endfor %}
    >
{% for item in inputs if item.is_node %}
      <span>{{ "{{ " ~ item.name ~ " }}" }}</span>
{% endfor %}
{% for slot in view.named_slots %}
      <ng-content select="[slot={{ slot.name }}]"></ng-content>
{% endfor %}
{% if view.default_slot %}
      <ng-content></ng-content>
{% endif %}
    </{{ view.element }}>
  `,
})
export class {{ view.name }}Component {
{% for item in inputs %}
{% if item.required %}
  @Input({ required: true }) {{ item.name }}!: {{ types[item.name] }};
{% elif item.has_default %}
  @Input() {{ item.name }}: {{ types[item.name] }} = {{ item.default | js }};
{% else %}
  @Input() {{ item.name }}?: {{ types[item.name] }};
{% endif %}
{% endfor %}
{% for name, event in emitted.items() %}
  @Output() readonly {{ event }} = new EventEmitter<void>();
{% endfor %}

  private get resolved() {
    return resolveStyles(TABLE, {{ selection }}, {{ states }});
  }

  get classes(): string[] {
    return [{{ view.root_class | js }}, ...this.resolved.classes];
  }

  get style(): Record<string, string> {
    return withFloor({ ...this.resolved.tokens }, FLOOR);
  }

  get inactive(): boolean {
    return {{ inactive }};
  }
{% if view.activate_action %}

  activate(): void {
    if (!this.inactive) this.{{ emitted[view.activate_action] }}.emit();
  }
{% endif %}
{% if view.key_handlers %}

  onKeydown(event: KeyboardEvent): void {
    if (this.inactive) return;
    switch (event.key) {
{% for handler in view.key_handlers %}
      case {{ handler.dom_key | js }}:
        event.preventDefault();
        this.{{ emitted[handler.action] }}.emit();
        break;
{% endfor %}
    }
  }
{% endif %}
}
"""

SCSS_TEMPLATE = """\
// {{ view.name }} styles, generated by Facet. Do not edit.
@use "tokens" as facet;

:host {
  display: inline-block;
{% for name, prop in properties %}
  {{ prop }}: #{facet.facet-token({{ name | js }})};
{% endfor %}
}
{% for theme in themes %}

:host-context([data-theme={{ theme | js }}]) {
{% for name, prop in properties %}
  {{ prop }}: #{facet.facet-token({{ name | js }}, {{ theme | js }})};
{% endfor %}
}
{% endfor %}
{% if focus_css %}

{{ focus_css }}{% endif %}
"""


class AngularGenerator(WebGenerator):
    """Angular standalone component with an SCSS token sheet."""

    platform = "angular"
    version = "1.0.0"

    def get_capabilities(self) -> GeneratorCapabilities:
        return GeneratorCapabilities(
            name="Angular",
            description="Standalone Angular component (TypeScript, SCSS)",
            file_extension=".component.ts",
            token_style=TokenStyle.SCSS,
        )

    def styles_path(self, view: ComponentView) -> str:
        return f"{view.slug}.styles.ts"

    def attribute_expression(self, attr: AriaView) -> str:
        return attr.value if attr.literal else attr.prop

    def root_attributes(self, view: ComponentView) -> list[str]:
        attributes: list[str] = []
        if view.element == "button":
            attributes.append('type="button"')
        attributes.append('[ngClass]="classes"')
        attributes.append('[ngStyle]="style"')
        if view.role_attribute and view.role:
            attributes.append(f'role="{view.role}"')
        for attr in view.static_aria:
            if attr.literal:
                attributes.append(f'{attr.name}="{attr.value}"')
            else:
                attributes.append(f'[attr.{attr.name}]="{attr.prop}"')
        for attr in view.scoped_aria:
            expression = scoped_value(view, attr, absent="null").replace('"', "'")
            attributes.append(f'[attr.{attr.name}]="{expression}"')
        if view.needs_tabindex:
            attributes.append('[attr.tabindex]="inactive ? -1 : 0"')
        if view.native_focusable and view.disabling_states:
            attributes.append('[disabled]="inactive"')
        if view.activate_action:
            attributes.append('(click)="activate()"')
        if view.key_handlers:
            attributes.append('(keydown)="onKeydown($event)"')
        return attributes

    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        inputs = [item for item in view.inputs if not item.is_event]
        emitted = {item.name: event_name(item.name) for item in view.events}

        def this(name: str) -> str:
            return f"this.{name}"

        component = render(
            TEMPLATE,
            view=view,
            inputs=inputs,
            types={item.name: ts_type(item) for item in inputs},
            events=list(emitted.values()),
            emitted=emitted,
            selection=selection_literal(view, this),
            states=states_literal(view, this),
            inactive=inactive_expression(view, this),
            attributes=self.root_attributes(view),
        )
        properties = [
            (name, view.tokens.lookup(name).property) for name in view.csm.referenced_tokens()
        ]
        sheet = render(
            SCSS_TEMPLATE,
            view=view,
            properties=properties,
            themes=list(view.tokens.themes[1:]) if properties else [],
            focus_css=self.focus_css(view),
        )
        return [
            GeneratedFile(path=f"{view.slug}.component.ts", content=component, kind=FileKind.COMPONENT),
            GeneratedFile(path=f"{view.slug}.component.scss", content=sheet, kind=FileKind.STYLES),
            self.styles_module(view),
        ]
