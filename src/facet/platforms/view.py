"""
Target-neutral view of a component, prepared once per generation.

Generators render from a ComponentView rather than walking the CSM
themselves, so every platform agrees on the public interface, the contract
attributes, which keys need explicit handlers and the minimum target size.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from ..core.ir import (
    AriaAttribute,
    ColorPair,
    ComponentSpec,
    PropSpec,
    PropType,
    SlotSpec,
    StateKind,
    TargetSize,
)
from ..core.roles import ACTIVATION_KEYS, NATIVE_ELEMENTS, NATIVE_FOCUSABLE
from ..core.token_transformer import PlatformTokenBinding
from ..core.units import round_dp
from ..core.variant_compiler import VariantResolver

# KeyboardEvent.key values
_DOM_KEYS = {"Space": " "}

# Style properties that the contract floor applies to
FLOOR_PROPERTIES = {"height": "min-height", "width": "min-width"}


def camel_case(name: str) -> str:
    """Kebab-case style property -> camelCase (``min-height`` -> ``minHeight``)."""
    head, *rest = name.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def kebab_case(name: str) -> str:
    return re.sub(r"[_\s]+", "-", re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", name)).lower()


@dataclass(frozen=True)
class InputView:
    """
    One entry of a generated component's public interface.

    Props, variant axes and states all surface as inputs: axes take one of
    their values, boolean states a flag, enum states one value or nothing.
    """

    name: str
    source: str  # "prop" | "variant" | "state"
    type: PropType
    required: bool = False
    default: Any = None
    values: tuple[str, ...] = ()
    description: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def is_event(self) -> bool:
        return self.type == PropType.EVENT

    @property
    def is_node(self) -> bool:
        return self.type == PropType.NODE


@dataclass(frozen=True)
class AriaView:
    """A contract attribute as generated code emits it."""

    name: str
    value: str | None
    prop: str | None
    state: str | None

    @property
    def literal(self) -> bool:
        return self.prop is None


@dataclass(frozen=True)
class KeyHandler:
    key: str
    dom_key: str
    action: str


@dataclass
class ComponentView:
    """Everything a generator needs to render one component."""

    csm: ComponentSpec
    resolver: VariantResolver
    tokens: PlatformTokenBinding
    inputs: list[InputView]
    slots: list[SlotSpec]
    element: str
    role: str | None
    role_attribute: bool
    native_focusable: bool
    aria: list[AriaView]
    activate_action: str | None
    key_handlers: list[KeyHandler]
    needs_tabindex: bool
    disabling_states: list[str]
    floor: dict[str, int] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.csm.id

    @property
    def name(self) -> str:
        return self.csm.display_name

    @property
    def slug(self) -> str:
        return kebab_case(self.csm.id)

    @property
    def root_class(self) -> str:
        return f"facet-{self.slug}"

    @property
    def tag(self) -> str:
        """Custom element name (must contain a hyphen)."""
        return f"facet-{self.slug}"

    @property
    def description(self) -> str:
        return self.csm.description or f"{self.name} component"

    @property
    def focus_visible(self) -> bool:
        return self.csm.accessibility.focus_visible

    @property
    def interactive(self) -> bool:
        return self.csm.accessibility.is_interactive

    @property
    def props(self) -> list[InputView]:
        return [i for i in self.inputs if i.source == "prop"]

    @property
    def events(self) -> list[InputView]:
        return [i for i in self.inputs if i.is_event]

    @property
    def variant_inputs(self) -> list[InputView]:
        return [i for i in self.inputs if i.source == "variant"]

    @property
    def state_inputs(self) -> list[InputView]:
        return [i for i in self.inputs if i.source == "state"]

    @property
    def default_slot(self) -> SlotSpec | None:
        for slot in self.slots:
            if slot.is_default:
                return slot
        return None

    @property
    def named_slots(self) -> list[SlotSpec]:
        return [slot for slot in self.slots if not slot.is_default]

    @property
    def static_aria(self) -> list[AriaView]:
        return [a for a in self.aria if a.state is None]

    @property
    def scoped_aria(self) -> list[AriaView]:
        return [a for a in self.aria if a.state is not None]

    def table(self, token_ref=None, property_name=None) -> dict[str, Any]:
        """The resolver table, token references in the platform's form."""
        return self.resolver.to_table(token_ref=token_ref, property_name=property_name)

    def is_boolean_state(self, name: str) -> bool:
        state = self.csm.get_state(name)
        return state is not None and state.kind == StateKind.BOOLEAN

    # -------------------------------------------------------------------------
    # Facts recorded in ArtifactSemantics
    # -------------------------------------------------------------------------

    def static_attributes(self, expression) -> dict[str, str]:
        """Unconditional attributes -> emitted expression, via the platform's formatter."""
        attributes: dict[str, str] = {}
        if self.role_attribute and self.role:
            attributes["role"] = expression(AriaView(name="role", value=self.role, prop=None, state=None))
        for attr in self.static_aria:
            attributes[attr.name] = expression(attr)
        if self.needs_tabindex:
            attributes["tabindex"] = "0"
        return dict(sorted(attributes.items()))

    def state_attributes(self, expression) -> dict[str, dict[str, str]]:
        scoped: dict[str, dict[str, str]] = {}
        for attr in self.scoped_aria:
            scoped.setdefault(attr.state, {})[attr.name] = expression(attr)
        return {state: dict(sorted(attrs.items())) for state, attrs in sorted(scoped.items())}

    def focusable_states(self) -> list[str]:
        """'default' plus every state that leaves the control operable."""
        return ["default"] + [s.name for s in self.csm.states if s.interactive]

    def handled_keys(self) -> list[str]:
        keys = {h.key for h in self.key_handlers}
        if self.native_focusable and self.activate_action:
            # Native buttons turn Enter and Space into click
            keys.update(ACTIVATION_KEYS)
        return sorted(keys)

    def color_pairs(self) -> list[ColorPair]:
        """
        Foreground/background token pairs per variant combination.

        Checked with no state active and with each operable state active on
        its own. States that remove interactivity are exempt from contrast
        requirements (WCAG 1.4.3, inactive components).
        """
        state_options: list[tuple[str, dict[str, bool | str]]] = [("", {})]
        for state in self.csm.states:
            if not state.interactive:
                continue
            if state.kind == StateKind.BOOLEAN:
                state_options.append((state.name, {state.name: True}))
            else:
                for value in state.values:
                    state_options.append((f"{state.name}={value}", {state.name: value}))

        pairs: list[ColorPair] = []
        seen: set[tuple[str, str]] = set()
        for combo in self.resolver.combinations():
            for label, states in state_options:
                bindings = self.resolver.resolve_bindings(combo, states)
                fg = bindings.get("color")
                bg = bindings.get("background-color")
                if fg is None or bg is None or (fg, bg) in seen:
                    continue
                seen.add((fg, bg))
                parts = [f"{axis}={value}" for axis, value in combo.items()]
                if label:
                    parts.append(label)
                pairs.append(ColorPair(foreground=fg, background=bg, combination=", ".join(parts) or "default"))
        return pairs

    def min_size(self) -> TargetSize | None:
        """
        Smallest effective interactive size over every variant combination.

        Per combination a dimension is the largest of the emitted floor and
        any bound ``min-*`` or fixed size token; a dimension with no value in
        some combination is unconstrained.
        """
        result: dict[str, int | None] = {}
        for dim, floor_prop in FLOOR_PROPERTIES.items():
            smallest: int | None = None
            constrained = True
            for combo in self.resolver.combinations():
                bindings = self.resolver.resolve_bindings(combo)
                candidates = [self.floor[floor_prop]] if floor_prop in self.floor else []
                for prop in (floor_prop, dim):
                    token = bindings.get(prop)
                    if token is not None:
                        candidates.append(self.tokens.size_dp(token))
                if not candidates:
                    constrained = False
                    break
                effective = max(candidates)
                smallest = effective if smallest is None else min(smallest, effective)
            result[dim] = smallest if constrained else None
        if result["height"] is None and result["width"] is None:
            return None
        return TargetSize(height=result["height"], width=result["width"])


def _inputs(csm: ComponentSpec) -> list[InputView]:
    inputs: list[InputView] = []
    for prop in csm.props:
        inputs.append(_prop_input(prop))
    for axis in csm.variants:
        inputs.append(
            InputView(
                name=axis.name,
                source="variant",
                type=PropType.ENUM,
                default=axis.default,
                values=tuple(axis.values),
                description=axis.description,
            )
        )
    for state in csm.states:
        if state.kind == StateKind.BOOLEAN:
            inputs.append(
                InputView(
                    name=state.name,
                    source="state",
                    type=PropType.BOOLEAN,
                    default=False,
                    description=state.description,
                )
            )
        else:
            inputs.append(
                InputView(
                    name=state.name,
                    source="state",
                    type=PropType.ENUM,
                    values=tuple(state.values),
                    description=state.description,
                )
            )
    return inputs


def _prop_input(prop: PropSpec) -> InputView:
    return InputView(
        name=prop.name,
        source="prop",
        type=prop.type,
        required=prop.required,
        default=prop.default,
        values=tuple(prop.values),
        description=prop.description,
    )


def _aria(attr: AriaAttribute) -> AriaView:
    value = attr.value
    if value is None and attr.prop is None:
        value = "true"
    return AriaView(name=attr.name, value=value, prop=attr.prop, state=attr.state)


def build_view(
    csm: ComponentSpec,
    resolver: VariantResolver,
    tokens: PlatformTokenBinding,
    floor: dict[str, int] | None = None,
) -> ComponentView:
    """
    Prepare the view a generator renders from.

    Args:
        csm: Component specification
        resolver: Compiled resolver for the same CSM version
        tokens: Token binding for the target platform
        floor: Minimum size properties in whole dp; derived from the
            contract when omitted
    """
    contract = csm.accessibility
    role = contract.role
    element = NATIVE_ELEMENTS.get(role or "", "div")
    native_focusable = element in NATIVE_FOCUSABLE

    activate_action = None
    key_handlers: list[KeyHandler] = []
    for interaction in contract.keyboard:
        if interaction.key in ACTIVATION_KEYS and activate_action in (None, interaction.action):
            activate_action = interaction.action
            if native_focusable:
                continue
        key_handlers.append(
            KeyHandler(
                key=interaction.key,
                dom_key=_DOM_KEYS.get(interaction.key, interaction.key),
                action=interaction.action,
            )
        )

    if floor is None:
        floor = contract_floor(csm)

    return ComponentView(
        csm=csm,
        resolver=resolver,
        tokens=tokens,
        inputs=_inputs(csm),
        slots=list(csm.slots),
        element=element,
        role=role,
        role_attribute=role is not None and element == "div",
        native_focusable=native_focusable,
        aria=[_aria(a) for a in contract.aria],
        activate_action=activate_action,
        key_handlers=key_handlers,
        needs_tabindex=not native_focusable and contract.is_interactive,
        disabling_states=[s.name for s in csm.states if not s.interactive],
        floor=floor,
    )


def contract_floor(csm: ComponentSpec) -> dict[str, int]:
    """Contract minimum target as ``min-height``/``min-width`` in whole dp."""
    target = csm.accessibility.min_target
    if target is None:
        return {}
    floor: dict[str, int] = {}
    if target.height is not None:
        floor["min-height"] = round_dp(target.height)
    if target.width is not None:
        floor["min-width"] = round_dp(target.width)
    return floor
