"""
Platform generator base classes.

A PlatformGenerator turns (CSM, compiled resolver, token binding) into an
Artifact for one target. Generators are strategies: the pipeline only knows
this interface and finds implementations through the registry.

Every generator renders from a ComponentView and records what it emitted in
ArtifactSemantics, which is what the accessibility validator checks.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from functools import lru_cache
from typing import Any, ClassVar

from jinja2 import BaseLoader, Environment, StrictUndefined, Template

from ..core.errors import CapabilityGapError
from ..core.ir import (
    Artifact,
    ArtifactKey,
    ArtifactManifest,
    ArtifactSemantics,
    ComponentSpec,
    FileKind,
    GeneratedFile,
    compute_digest,
)
from ..core.roles import ACTIVATION_KEYS
from ..core.token_transformer import PlatformTokenBinding, TokenStyle, require_tokens
from ..core.variant_compiler import VariantResolver
from .view import AriaView, ComponentView, build_view, camel_case, contract_floor

logger = logging.getLogger(__name__)


class Capability(StrEnum):
    """Contract features a target can express natively."""

    ARIA = "aria"
    FOCUS_RING = "focus-ring"
    KEY_EVENTS = "key-events"  # handlers for keys other than activation
    NAMED_SLOTS = "named-slots"


@dataclass
class GeneratorCapabilities:
    """
    Describes what a generator emits and supports.

    Used for contract checks, introspection and CLI help text.
    """

    name: str
    description: str
    file_extension: str
    token_style: TokenStyle
    units: str = "rem"
    features: frozenset[Capability] = field(default_factory=lambda: frozenset(Capability))
    aria: frozenset[str] | None = None  # None: any aria-* attribute


# =============================================================================
# Templating
# =============================================================================


def _js(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _js_block(value: Any, indent: int = 0) -> str:
    text = json.dumps(value, ensure_ascii=False, indent=2)
    if indent:
        pad = " " * indent
        text = text.replace("\n", "\n" + pad)
    return text


_env = Environment(
    loader=BaseLoader(),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)
_env.filters["js"] = _js
_env.filters["js_block"] = _js_block
_env.filters["camel"] = camel_case


@lru_cache(maxsize=64)
def _compile(source: str) -> Template:
    return _env.from_string(source)


def render(source: str, **context: Any) -> str:
    """Render a template string; undefined names are errors."""
    return _compile(source).render(**context)


RESOLVER_TEMPLATE = """\
{% if typescript %}
type StyleBlock = { styles: string[]; tokens: Record<string, string> };
type StyleTable = {
  base: StyleBlock;
  axes: { name: string; default: string; values: Record<string, StyleBlock> }[];
  compounds: (StyleBlock & { when: Record<string, string> })[];
  states: (StyleBlock & { name: string; kind: string; values: Record<string, StyleBlock> })[];
};

{% endif %}
// Base, then axes in order, then matching compound rules in declaration
// order, then active states. Repeated identifiers keep their last position.
export function resolveStyles(
  table{% if typescript %}: StyleTable{% endif %},
  selection{% if typescript %}: Record<string, string | undefined>{% endif %},
  states{% if typescript %}: Record<string, boolean | string | null | undefined>{% endif %},
){% if typescript %}: { classes: string[]; tokens: Record<string, string> }{% endif %} {
  const blocks{% if typescript %}: StyleBlock[]{% endif %} = [table.base];
  const picked{% if typescript %}: Record<string, string>{% endif %} = {};
  for (const axis of table.axes) {
    const value = selection[axis.name] ?? axis.default;
    picked[axis.name] = value;
    blocks.push(axis.values[value] ?? axis.values[axis.default]);
  }
  for (const rule of table.compounds) {
    if (Object.entries(rule.when).every(([axis, value]) => picked[axis] === value)) {
      blocks.push(rule);
    }
  }
  for (const state of table.states) {
    const value = states[state.name];
    if (value === undefined || value === null || value === false) continue;
    blocks.push(state);
    if (state.kind === "enum" && typeof value === "string" && state.values[value]) {
      blocks.push(state.values[value]);
    }
  }
  const all = blocks.flatMap((block) => block.styles);
  const classes = all.filter((item, index) => all.lastIndexOf(item) === index);
  const tokens{% if typescript %}: Record<string, string>{% endif %} = {};
  for (const block of blocks) {
    for (const [prop, token] of Object.entries(block.tokens)) {
      delete tokens[prop];
      tokens[prop] = token;
    }
  }
  return { classes, tokens };
}
{% if with_floor %}

// Contract minimum size; a larger bound token still wins.
export function withFloor(
  style{% if typescript %}: Record<string, string>{% endif %},
  floor{% if typescript %}: Record<string, string>{% endif %},
){% if typescript %}: Record<string, string>{% endif %} {
  for (const [prop, min] of Object.entries(floor)) {
    style[prop] = style[prop] ? `max(${min}, ${style[prop]})` : min;
  }
  return style;
}
{% endif %}
"""


def resolver_source(typescript: bool = True, with_floor: bool = True) -> str:
    """Resolve function embedded next to every web artifact's style table."""
    return render(RESOLVER_TEMPLATE, typescript=typescript, with_floor=with_floor)


DOCS_TEMPLATE = """\
# {{ view.name }}

{{ view.description }}

Generated for `{{ platform }}` from `{{ view.id }}@{{ view.csm.version }}`,
token revision `{{ view.tokens.revision }}`.

## Inputs

| Name | Kind | Type | Default | Required |
| --- | --- | --- | --- | --- |
{% for input in view.inputs %}
| `{{ input.name }}` | {{ input.source }} | {{ input.values | join(" \\\\| ") if input.values else input.type }} | {{ input.default | js if input.has_default else "" }} | {{ "yes" if input.required else "no" }} |
{% endfor %}
{% if view.slots %}

## Slots

| Name | Required | Description |
| --- | --- | --- |
{% for slot in view.slots %}
| `{{ slot.name }}` | {{ "yes" if slot.required else "no" }} | {{ slot.description or "" }} |
{% endfor %}
{% endif %}
{% if view.resolver.axes %}

## Variants

| Axis | Values | Default |
| --- | --- | --- |
{% for axis in view.resolver.axes %}
| `{{ axis.name }}` | {{ axis.names | join(", ") }} | `{{ axis.default }}` |
{% endfor %}
{% endif %}

## Accessibility

- WCAG level: {{ contract.wcag_level }}
{% if contract.role %}
- Role: `{{ contract.role }}`
{% endif %}
{% for attr in view.aria %}
- `{{ attr.name }}`{% if attr.prop %} from `{{ attr.prop }}`{% elif attr.value %} = `{{ attr.value }}`{% endif %}{% if attr.state %} while `{{ attr.state }}`{% endif %}

{% endfor %}
{% for interaction in contract.keyboard %}
- {{ interaction.key }} fires `{{ interaction.action }}`
{% endfor %}
{% if contract.focus_visible %}
- Visible focus indicator
{% endif %}
{% if contract.min_target %}
- Minimum target:{% if contract.min_target.height %} height {{ contract.min_target.height | int }}dp{% endif %}{% if contract.min_target.width %} width {{ contract.min_target.width | int }}dp{% endif %}

{% endif %}
"""


def render_docs(view: ComponentView, platform: str) -> GeneratedFile:
    content = render(DOCS_TEMPLATE, view=view, platform=platform, contract=view.csm.accessibility)
    return GeneratedFile(path="README.md", content=content, kind=FileKind.DOCS)


# =============================================================================
# Generator interface
# =============================================================================


class PlatformGenerator(ABC):
    """
    Abstract base class for platform generators.

    Subclasses set ``platform`` and ``version``, describe themselves in
    get_capabilities() and implement emit(). generate() is the fixed
    sequence: contract check, token check, view, emit, describe.
    """

    platform: ClassVar[str] = ""
    version: ClassVar[str] = "1.0.0"

    def __init__(self, include_docs: bool = False) -> None:
        self.include_docs = include_docs

    @abstractmethod
    def get_capabilities(self) -> GeneratorCapabilities:
        """Describe the target."""

    @abstractmethod
    def emit(self, view: ComponentView) -> list[GeneratedFile]:
        """
        Render the component's source files.

        Token files and documentation are appended by generate().
        """

    @property
    def token_style(self) -> TokenStyle:
        return self.get_capabilities().token_style

    def attribute_expression(self, attr: AriaView) -> str:
        """How the platform writes an attribute value (JSX-style by default)."""
        if attr.literal:
            return _js(attr.value)
        return "{" + attr.prop + "}"

    def prepare(self, view: ComponentView) -> ComponentView:
        """Adjust the view for targets whose primitives differ from the DOM."""
        return view

    def target_floor(self, csm: ComponentSpec) -> dict[str, int]:
        """Minimum size properties in whole dp emitted on the root."""
        return contract_floor(csm)

    def check_contract(self, csm: ComponentSpec) -> None:
        """
        Refuse a contract the target cannot express.

        Raises:
            CapabilityGapError: Naming the first unsupported requirement
        """
        caps = self.get_capabilities()
        contract = csm.accessibility
        if contract.aria and Capability.ARIA not in caps.features:
            raise CapabilityGapError(self.platform, csm.id, contract.aria[0].name)
        if caps.aria is not None:
            for attr in contract.aria:
                if attr.name not in caps.aria:
                    raise CapabilityGapError(self.platform, csm.id, attr.name)
        if contract.focus_visible and Capability.FOCUS_RING not in caps.features:
            raise CapabilityGapError(self.platform, csm.id, "focus-visible")
        if Capability.KEY_EVENTS not in caps.features:
            for interaction in contract.keyboard:
                if interaction.key not in ACTIVATION_KEYS:
                    raise CapabilityGapError(self.platform, csm.id, f"key {interaction.key}")
        if Capability.NAMED_SLOTS not in caps.features:
            for slot in csm.slots:
                if not slot.is_default:
                    raise CapabilityGapError(self.platform, csm.id, f"slot {slot.name}")

    def attribute_names(self, view: ComponentView) -> dict[str, str]:
        """Contract attributes this target writes under another name."""
        return {}

    def describe(self, view: ComponentView) -> ArtifactSemantics:
        """Facts about what emit() produced."""
        return ArtifactSemantics(
            root_element=view.element,
            attributes=view.static_attributes(self.attribute_expression),
            state_attributes=view.state_attributes(self.attribute_expression),
            attribute_names=self.attribute_names(view),
            native_focusable=view.native_focusable,
            focusable_states=view.focusable_states(),
            key_handlers=view.handled_keys(),
            focus_ring=view.focus_visible and Capability.FOCUS_RING in self.get_capabilities().features,
            color_pairs=view.color_pairs(),
            min_size=view.min_size(),
        )

    def generate(
        self,
        csm: ComponentSpec,
        resolver: VariantResolver,
        tokens: PlatformTokenBinding,
    ) -> Artifact:
        """
        Generate the artifact for one component.

        Args:
            csm: Component specification
            resolver: Resolver compiled from the same CSM version
            tokens: Token binding transformed for this platform

        Returns:
            Artifact with pending validation

        Raises:
            CapabilityGapError: If the contract cannot be expressed
            MissingTokenError: If a style block references an absent token
        """
        self.check_contract(csm)
        require_tokens(csm, tokens)

        view = self.prepare(build_view(csm, resolver, tokens, floor=self.target_floor(csm)))
        files = list(self.emit(view))
        files.extend(tokens.files)
        if self.include_docs:
            files.append(render_docs(view, self.platform))

        key = ArtifactKey(
            component_id=csm.id,
            platform=self.platform,
            version=csm.version,
            revision=tokens.revision,
        )
        manifest = ArtifactManifest(
            component_id=csm.id,
            component_version=csm.version,
            token_revision=tokens.revision,
            platform=self.platform,
            generator=type(self).__name__,
            generator_version=self.version,
            digest=compute_digest(files),
        )
        logger.debug("Generated %s (%d files)", key, len(files))
        return Artifact(key=key, manifest=manifest, files=files, semantics=self.describe(view))
