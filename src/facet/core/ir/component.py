"""
Component Specification Model (CSM) IR types.

A ComponentSpec is the target-neutral description of one component: props,
variant axes, compound variant rules, slots, states and an accessibility
contract. It never names a framework API, hook or lifecycle concept, and it
is never mutated after publication (new behaviour means a new version).

Unknown fields are rejected everywhere so that a typo in a source document is
an error rather than silently ignored drift.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ID_RE = re.compile(r"^[a-z][a-z0-9]*(?:[-_][a-z0-9]+)*$")
_IDENT_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
_VERSION_RE = re.compile(r"^\d+(\.\d+){0,2}([-+][0-9A-Za-z.-]+)?$")
_PROPERTY_RE = re.compile(r"^[a-z][a-z-]*$")
_ARIA_RE = re.compile(r"^aria-[a-z]+$")

# Names that only make sense inside one framework's runtime.
_FRAMEWORK_NAMES = frozenset(
    {
        "componentDidMount",
        "componentDidUpdate",
        "componentWillUnmount",
        "getDerivedStateFromProps",
        "ngOnInit",
        "ngOnChanges",
        "ngOnDestroy",
        "ngAfterViewInit",
        "onMounted",
        "onUnmounted",
        "onBeforeMount",
        "onMount",
        "onDestroy",
        "beforeUpdate",
        "afterUpdate",
        "setup",
        "render",
        "connectedCallback",
        "disconnectedCallback",
    }
)
_HOOK_RE = re.compile(r"^use[A-Z]")


def _check_framework_free(kind: str, name: str) -> None:
    if name in _FRAMEWORK_NAMES or _HOOK_RE.match(name):
        raise ValueError(f"{kind} '{name}' names a framework API; a CSM must stay framework-free")


# =============================================================================
# Enums
# =============================================================================


class PropType(StrEnum):
    """Semantic prop types (never framework types)."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NODE = "node"  # renderable content
    EVENT = "event"  # callback fired by the component
    ENUM = "enum"


class StateKind(StrEnum):
    """Runtime state kinds."""

    BOOLEAN = "boolean"
    ENUM = "enum"


class WcagLevel(StrEnum):
    """WCAG conformance levels."""

    A = "A"
    AA = "AA"
    AAA = "AAA"


# =============================================================================
# Styles
# =============================================================================


class StyleBlock(BaseModel):
    """
    Ordered style identifiers plus token bindings.

    A bare list in a source document is shorthand for a block with only
    identifiers:

        md: [h-12]
        lg:
          styles: [h-14]
          tokens: {min-height: size.14}
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    styles: list[str] = Field(default_factory=list, description="Style identifiers, in order")
    tokens: dict[str, str] = Field(
        default_factory=dict, description="Style property -> token name"
    )

    @model_validator(mode="before")
    @classmethod
    def _from_list(cls, data: Any) -> Any:
        if isinstance(data, list | tuple):
            return {"styles": list(data)}
        return data

    @field_validator("styles")
    @classmethod
    def validate_styles(cls, v: list[str]) -> list[str]:
        for ident in v:
            if not ident or any(ch.isspace() for ch in ident):
                raise ValueError(f"Invalid style identifier {ident!r}")
        return v

    @field_validator("tokens")
    @classmethod
    def validate_properties(cls, v: dict[str, str]) -> dict[str, str]:
        for prop in v:
            if not _PROPERTY_RE.match(prop):
                raise ValueError(f"Invalid style property '{prop}' (use kebab-case)")
        return v


# =============================================================================
# Props, Variants, Slots, States
# =============================================================================


class PropSpec(BaseModel):
    """
    Component prop.

    Example:
        PropSpec(name="label", type=PropType.STRING, required=True)
        PropSpec(name="onPress", type=PropType.EVENT)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Prop name")
    type: PropType = Field(description="Semantic type")
    required: bool = Field(default=False, description="Is this prop required?")
    default: Any | None = Field(default=None, description="Default value")
    values: list[str] = Field(default_factory=list, description="Allowed values (enum)")
    description: str | None = Field(default=None, description="Prop description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _IDENT_RE.match(v):
            raise ValueError(f"Invalid prop name '{v}'")
        _check_framework_free("prop", v)
        return v

    @model_validator(mode="after")
    def _check_default(self) -> PropSpec:
        if self.type == PropType.ENUM:
            if not self.values:
                raise ValueError(f"enum prop '{self.name}' declares no values")
            if self.default is not None and self.default not in self.values:
                raise ValueError(f"default of prop '{self.name}' is not one of {self.values}")
        elif self.values:
            raise ValueError(f"prop '{self.name}' is not an enum but declares values")
        if self.default is None:
            return self
        expected: tuple[type, ...] = {
            PropType.STRING: (str,),
            PropType.NUMBER: (int, float),
            PropType.BOOLEAN: (bool,),
        }.get(self.type, ())
        if self.type in (PropType.NODE, PropType.EVENT):
            raise ValueError(f"{self.type} prop '{self.name}' cannot declare a default")
        if expected and (
            not isinstance(self.default, expected)
            or (self.type == PropType.NUMBER and isinstance(self.default, bool))
        ):
            raise ValueError(f"default of prop '{self.name}' is not a {self.type}")
        return self


class VariantAxis(BaseModel):
    """
    Named dimension of stylistic choice.

    Values keep their declaration order. A missing default is reported by the
    variant compiler (MissingDefaultVariantError), not at load time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Axis name (e.g. 'size')")
    values: dict[str, StyleBlock] = Field(description="Value -> style block")
    default: str | None = Field(default=None, description="Default value")
    description: str | None = Field(default=None, description="Axis description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _IDENT_RE.match(v):
            raise ValueError(f"Invalid variant axis name '{v}'")
        _check_framework_free("variant axis", v)
        return v

    @model_validator(mode="after")
    def _check_values(self) -> VariantAxis:
        if not self.values:
            raise ValueError(f"variant axis '{self.name}' declares no values")
        if self.default is not None and self.default not in self.values:
            raise ValueError(
                f"default '{self.default}' of axis '{self.name}' is not one of {list(self.values)}"
            )
        return self


class CompoundVariantRule(StyleBlock):
    """Styles applied only when every (axis, value) in ``when`` is selected."""

    when: dict[str, str] = Field(description="Axis -> required value")

    @field_validator("when")
    @classmethod
    def validate_when(cls, v: dict[str, str]) -> dict[str, str]:
        if not v:
            raise ValueError("compound variant rule needs at least one condition")
        return v


class SlotSpec(BaseModel):
    """Named content insertion point. 'default' is the unnamed slot."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Slot name")
    required: bool = Field(default=False, description="Must content be provided?")
    description: str | None = Field(default=None, description="Slot description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _IDENT_RE.match(v):
            raise ValueError(f"Invalid slot name '{v}'")
        _check_framework_free("slot", v)
        return v

    @property
    def is_default(self) -> bool:
        return self.name == "default"


class StateSpec(StyleBlock):
    """
    Runtime state.

    Boolean states apply ``styles``/``tokens`` while active. Enum states apply
    the block of the selected value.
    """

    name: str = Field(description="State name")
    kind: StateKind = Field(default=StateKind.BOOLEAN, description="State kind")
    values: dict[str, StyleBlock] = Field(
        default_factory=dict, description="Enum value -> style block"
    )
    interactive: bool = Field(
        default=True, description="False when the state removes interactivity"
    )
    exclusive_with: list[str] = Field(
        default_factory=list, description="States that cannot be active together with this one"
    )
    description: str | None = Field(default=None, description="State description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _IDENT_RE.match(v):
            raise ValueError(f"Invalid state name '{v}'")
        _check_framework_free("state", v)
        return v

    @model_validator(mode="after")
    def _check_kind(self) -> StateSpec:
        if self.kind == StateKind.ENUM and not self.values:
            raise ValueError(f"enum state '{self.name}' declares no values")
        if self.kind == StateKind.BOOLEAN and self.values:
            raise ValueError(f"boolean state '{self.name}' cannot declare values")
        return self


# =============================================================================
# Accessibility Contract
# =============================================================================


class AriaAttribute(BaseModel):
    """
    Required ARIA attribute.

    Exactly one source for the value: a literal ``value`` or a ``prop``.
    A ``state`` scope emits the attribute only while that state is active;
    state-scoped attributes without a value emit ``"true"``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Attribute name (aria-*)")
    value: str | None = Field(default=None, description="Literal value")
    prop: str | None = Field(default=None, description="Prop supplying the value")
    state: str | None = Field(default=None, description="State scope")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _ARIA_RE.match(v):
            raise ValueError(f"'{v}' is not an aria-* attribute")
        return v

    @model_validator(mode="after")
    def _check_source(self) -> AriaAttribute:
        if self.value is not None and self.prop is not None:
            raise ValueError(f"{self.name}: give either value or prop, not both")
        if self.value is None and self.prop is None and self.state is None:
            raise ValueError(f"{self.name}: unconditional attribute needs a value or prop")
        return self

    @property
    def state_scoped(self) -> bool:
        return self.state is not None


class KeyboardInteraction(BaseModel):
    """Key the component must handle and the event prop it fires."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(description="Key name (Enter, Space, Escape, ArrowDown, ...)")
    action: str = Field(description="Event prop fired")


class TargetSize(BaseModel):
    """Minimum interactive size in device-independent pixels."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    height: float | None = Field(default=None, gt=0, description="Minimum height (dp)")
    width: float | None = Field(default=None, gt=0, description="Minimum width (dp)")


class AccessibilityContract(BaseModel):
    """
    Accessibility guarantees every generated artifact must keep.

    Example:
        AccessibilityContract(
            wcag_level=WcagLevel.AA,
            role="button",
            aria=[AriaAttribute(name="aria-label", prop="label")],
            keyboard=[KeyboardInteraction(key="Enter", action="onPress")],
            min_target=TargetSize(height=44),
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    wcag_level: WcagLevel = Field(default=WcagLevel.AA, description="Minimum WCAG level")
    role: str | None = Field(default=None, description="ARIA role")
    aria: list[AriaAttribute] = Field(default_factory=list, description="Required attributes")
    keyboard: list[KeyboardInteraction] = Field(
        default_factory=list, description="Keyboard requirements"
    )
    focus_visible: bool = Field(default=False, description="Require a visible focus indicator")
    min_target: TargetSize | None = Field(default=None, description="Minimum interactive size")
    interactive_states: list[str] = Field(
        default_factory=list,
        description="States that must remain keyboard operable",
    )

    @property
    def is_interactive(self) -> bool:
        return bool(self.keyboard) or self.focus_visible or bool(self.interactive_states)


# =============================================================================
# Component
# =============================================================================


class ComponentSpec(BaseModel):
    """
    Component specification.

    Example:
        ComponentSpec(
            id="button",
            version="1.0.0",
            base=StyleBlock(styles=["inline-flex"]),
            variants=[
                VariantAxis(
                    name="size",
                    values={"md": StyleBlock(styles=["h-12"]), "lg": StyleBlock(styles=["h-14"])},
                    default="md",
                )
            ],
            states=[StateSpec(name="disabled", styles=["opacity-50"], interactive=False)],
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(description="Stable component id")
    version: str = Field(description="CSM version")
    name: str | None = Field(default=None, description="Display name (PascalCase)")
    description: str | None = Field(default=None, description="Component description")
    props: list[PropSpec] = Field(default_factory=list, description="Props, in order")
    base: StyleBlock = Field(default_factory=StyleBlock, description="Always-applied styles")
    variants: list[VariantAxis] = Field(default_factory=list, description="Variant axes")
    compound_variants: list[CompoundVariantRule] = Field(
        default_factory=list, description="Compound variant rules, in order"
    )
    slots: list[SlotSpec] = Field(default_factory=list, description="Content slots")
    states: list[StateSpec] = Field(default_factory=list, description="Runtime states")
    accessibility: AccessibilityContract = Field(
        default_factory=AccessibilityContract, description="Accessibility contract"
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not _ID_RE.match(v):
            raise ValueError(f"Invalid component id '{v}' (lowercase, - or _ separated)")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not _VERSION_RE.match(v):
            raise ValueError(f"Invalid version '{v}'")
        return v

    @model_validator(mode="after")
    def _check_references(self) -> ComponentSpec:
        prop_names = _unique("prop", [p.name for p in self.props])
        axis_names = _unique("variant axis", [a.name for a in self.variants])
        state_names = _unique("state", [s.name for s in self.states])
        _unique("slot", [s.name for s in self.slots])

        clashes = (prop_names & axis_names) | (prop_names & state_names) | (axis_names & state_names)
        if clashes:
            raise ValueError(f"names used by more than one prop/axis/state: {sorted(clashes)}")

        axes = {a.name: a for a in self.variants}
        for index, rule in enumerate(self.compound_variants):
            for axis_name, value in rule.when.items():
                if axis_name not in axes:
                    raise ValueError(f"compound rule #{index} references unknown axis '{axis_name}'")
                if value not in axes[axis_name].values:
                    raise ValueError(
                        f"compound rule #{index} references unknown value '{value}' of axis '{axis_name}'"
                    )

        for state in self.states:
            for other in state.exclusive_with:
                if other not in state_names:
                    raise ValueError(f"state '{state.name}' is exclusive with unknown state '{other}'")

        props = {p.name: p for p in self.props}
        contract = self.accessibility
        for attr in contract.aria:
            if attr.prop is not None and attr.prop not in props:
                raise ValueError(f"{attr.name} references unknown prop '{attr.prop}'")
            if attr.state is not None and attr.state not in state_names:
                raise ValueError(f"{attr.name} is scoped to unknown state '{attr.state}'")
        for interaction in contract.keyboard:
            prop = props.get(interaction.action)
            if prop is None or prop.type != PropType.EVENT:
                raise ValueError(
                    f"keyboard {interaction.key} fires '{interaction.action}', which is not an event prop"
                )
        for name in contract.interactive_states:
            if name not in state_names:
                raise ValueError(f"interactive state '{name}' is not a declared state")
        return self

    @property
    def display_name(self) -> str:
        """PascalCase name used for generated classes and files."""
        if self.name:
            return self.name
        parts = re.split(r"[-_]", self.id)
        return "".join(part[:1].upper() + part[1:] for part in parts)

    def get_prop(self, name: str) -> PropSpec | None:
        """Get prop by name."""
        for prop in self.props:
            if prop.name == name:
                return prop
        return None

    def get_state(self, name: str) -> StateSpec | None:
        """Get state by name."""
        for state in self.states:
            if state.name == name:
                return state
        return None

    def style_blocks(self) -> list[StyleBlock]:
        """Every style block in declaration order."""
        blocks: list[StyleBlock] = [self.base]
        for axis in self.variants:
            blocks.extend(axis.values.values())
        blocks.extend(self.compound_variants)
        for state in self.states:
            blocks.append(state)
            blocks.extend(state.values.values())
        return blocks

    def referenced_tokens(self) -> list[str]:
        """Token names referenced by any style block, first-seen order."""
        seen: dict[str, None] = {}
        for block in self.style_blocks():
            for token in block.tokens.values():
                seen.setdefault(token, None)
        return list(seen)


def _unique(kind: str, names: list[str]) -> set[str]:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ValueError(f"duplicate {kind} '{name}'")
        seen.add(name)
    return seen
