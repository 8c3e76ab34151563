"""
Variant Compiler: CSM variant declarations -> a pure, ordered resolver.

Resolution order for a selection:

1. the base block (always applied);
2. for each variant axis in declaration order, the block of the selected
   value (or the axis default);
3. every compound rule whose conditions all match, in declaration order, so
   when two rules match the later-declared one lands last and wins;
4. active states in declaration order, so state always has final precedence.

Identifiers are appended, never replaced. The resolved tuple is an ordered
set: when an identifier occurs more than once, it keeps the position of its
last occurrence (the occurrence with the highest precedence).

Token bindings follow the same order; a later block that binds the same
style property overrides the earlier binding.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import InvalidSelectionError, MissingDefaultVariantError
from .ir.component import ComponentSpec, StateKind, StyleBlock

logger = logging.getLogger(__name__)

Selection = Mapping[str, str]
StateValues = Mapping[str, bool | str | None]


@dataclass(frozen=True)
class ResolvedBlock:
    """A style block frozen into tuples, tagged with a stable id."""

    id: str
    styles: tuple[str, ...]
    tokens: tuple[tuple[str, str], ...]

    @classmethod
    def of(cls, block_id: str, block: StyleBlock) -> ResolvedBlock:
        return cls(id=block_id, styles=tuple(block.styles), tokens=tuple(block.tokens.items()))


@dataclass(frozen=True)
class _Axis:
    name: str
    default: str
    values: tuple[tuple[str, ResolvedBlock], ...]

    def block(self, value: str) -> ResolvedBlock:
        for name, block in self.values:
            if name == value:
                return block
        raise InvalidSelectionError(f"'{value}' is not a value of variant axis '{self.name}'")

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.values)


@dataclass(frozen=True)
class _Compound:
    when: tuple[tuple[str, str], ...]
    block: ResolvedBlock

    def matches(self, selection: Mapping[str, str]) -> bool:
        return all(selection.get(axis) == value for axis, value in self.when)


@dataclass(frozen=True)
class _State:
    name: str
    kind: StateKind
    block: ResolvedBlock
    values: tuple[tuple[str, ResolvedBlock], ...]
    exclusive_with: tuple[str, ...]
    interactive: bool


def _dedupe_keep_last(items: list[str]) -> tuple[str, ...]:
    last = {item: index for index, item in enumerate(items)}
    return tuple(item for index, item in enumerate(items) if last[item] == index)


@dataclass(frozen=True)
class VariantResolver:
    """
    Compiled, target-agnostic resolver for one component.

    Pure: output depends only on the selection and states passed in.
    """

    component_id: str
    component_version: str
    base: ResolvedBlock
    axes: tuple[_Axis, ...]
    compounds: tuple[_Compound, ...]
    states: tuple[_State, ...]

    # -------------------------------------------------------------------------
    # Selection handling
    # -------------------------------------------------------------------------

    def normalize(self, selection: Selection | None = None) -> dict[str, str]:
        """Complete a selection with defaults, in axis declaration order.

        Raises:
            InvalidSelectionError: For unknown axes or values
        """
        selection = dict(selection or {})
        known = {axis.name for axis in self.axes}
        unknown = sorted(set(selection) - known)
        if unknown:
            raise InvalidSelectionError(
                f"{self.component_id}: unknown variant axes {unknown}; known: {sorted(known)}"
            )
        full: dict[str, str] = {}
        for axis in self.axes:
            value = selection.get(axis.name, axis.default)
            axis.block(value)
            full[axis.name] = value
        return full

    def active_states(self, states: StateValues | None = None) -> list[tuple[_State, ResolvedBlock]]:
        """Active states with the block each contributes, in declaration order.

        Raises:
            InvalidSelectionError: For unknown states/values or exclusive conflicts
        """
        states = dict(states or {})
        by_name = {state.name: state for state in self.states}
        unknown = sorted(set(states) - set(by_name))
        if unknown:
            raise InvalidSelectionError(f"{self.component_id}: unknown states {unknown}")

        active: list[tuple[_State, ResolvedBlock]] = []
        for state in self.states:
            value = states.get(state.name)
            if value is None or value is False:
                continue
            if state.kind == StateKind.BOOLEAN:
                if value is not True:
                    raise InvalidSelectionError(
                        f"{self.component_id}: boolean state '{state.name}' got {value!r}"
                    )
                active.append((state, state.block))
                continue
            if not isinstance(value, str):
                raise InvalidSelectionError(
                    f"{self.component_id}: enum state '{state.name}' got {value!r}"
                )
            for name, block in state.values:
                if name == value:
                    active.append((state, _merge(state.block, block)))
                    break
            else:
                raise InvalidSelectionError(
                    f"{self.component_id}: '{value}' is not a value of state '{state.name}'"
                )

        names = {state.name for state, _ in active}
        for state, _ in active:
            clash = names.intersection(state.exclusive_with)
            if clash:
                raise InvalidSelectionError(
                    f"{self.component_id}: state '{state.name}' cannot be active with {sorted(clash)}"
                )
        return active

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_blocks(
        self, selection: Selection | None = None, states: StateValues | None = None
    ) -> list[ResolvedBlock]:
        """Blocks that apply, in precedence order (lowest first)."""
        full = self.normalize(selection)
        blocks = [self.base]
        for axis in self.axes:
            blocks.append(axis.block(full[axis.name]))
        for compound in self.compounds:
            if compound.matches(full):
                blocks.append(compound.block)
        for _state, block in self.active_states(states):
            blocks.append(block)
        return blocks

    def resolve(
        self, selection: Selection | None = None, states: StateValues | None = None
    ) -> tuple[str, ...]:
        """Ordered set of style identifiers for a selection and states."""
        identifiers: list[str] = []
        for block in self.resolve_blocks(selection, states):
            identifiers.extend(block.styles)
        return _dedupe_keep_last(identifiers)

    def resolve_bindings(
        self, selection: Selection | None = None, states: StateValues | None = None
    ) -> dict[str, str]:
        """Style property -> token name, later blocks overriding earlier ones."""
        bindings: dict[str, str] = {}
        for block in self.resolve_blocks(selection, states):
            for prop, token in block.tokens:
                bindings.pop(prop, None)
                bindings[prop] = token
        return bindings

    def matching_compounds(self, selection: Selection | None = None) -> list[int]:
        """Indexes of compound rules that match, in declaration order."""
        full = self.normalize(selection)
        return [i for i, compound in enumerate(self.compounds) if compound.matches(full)]

    def combinations(self) -> list[dict[str, str]]:
        """Every full selection, axes in declaration order, values in declaration order."""
        if not self.axes:
            return [{}]
        names = [axis.name for axis in self.axes]
        return [dict(zip(names, combo, strict=True)) for combo in itertools.product(*(a.names for a in self.axes))]

    # -------------------------------------------------------------------------
    # Introspection for generators
    # -------------------------------------------------------------------------

    def blocks(self) -> list[ResolvedBlock]:
        """Every block in declaration order."""
        result = [self.base]
        for axis in self.axes:
            result.extend(block for _, block in axis.values)
        result.extend(compound.block for compound in self.compounds)
        for state in self.states:
            if state.kind == StateKind.BOOLEAN:
                result.append(state.block)
            else:
                result.extend(_merge(state.block, block) for _, block in state.values)
        return result

    def identifiers(self) -> tuple[str, ...]:
        """Every identifier the resolver can produce, first-seen order."""
        seen: dict[str, None] = {}
        for block in self.blocks():
            for ident in block.styles:
                seen.setdefault(ident, None)
        return tuple(seen)

    def to_table(
        self,
        token_ref: Callable[[str], str] | None = None,
        property_name: Callable[[str], str] | None = None,
    ) -> dict[str, Any]:
        """
        JSON-ready description of the resolver.

        Generated code embeds this table next to a small resolve function that
        applies the same algorithm, so every platform resolves identically.

        Args:
            token_ref: Maps a token name to what the platform stores in the
                table (a ``var(--x)`` reference, or the name itself)
            property_name: Maps a kebab-case style property to the platform's
                key (e.g. camelCase for inline style objects)
        """
        ref = token_ref or (lambda name: name)
        prop = property_name or (lambda name: name)

        def block_entry(block: ResolvedBlock) -> dict[str, Any]:
            return {
                "styles": list(block.styles),
                "tokens": {prop(p): ref(token) for p, token in block.tokens},
            }

        return {
            "base": block_entry(self.base),
            "axes": [
                {
                    "name": axis.name,
                    "default": axis.default,
                    "values": {name: block_entry(block) for name, block in axis.values},
                }
                for axis in self.axes
            ],
            "compounds": [
                {"when": dict(compound.when), **block_entry(compound.block)}
                for compound in self.compounds
            ],
            "states": [
                {
                    "name": state.name,
                    "kind": str(state.kind),
                    **block_entry(state.block),
                    "values": {name: block_entry(block) for name, block in state.values},
                }
                for state in self.states
            ],
        }

    @property
    def axis_names(self) -> list[str]:
        return [axis.name for axis in self.axes]

    @property
    def defaults(self) -> dict[str, str]:
        return {axis.name: axis.default for axis in self.axes}


def _merge(outer: ResolvedBlock, inner: ResolvedBlock) -> ResolvedBlock:
    """Enum state: the state's own block followed by the selected value's block."""
    return ResolvedBlock(
        id=inner.id,
        styles=outer.styles + inner.styles,
        tokens=outer.tokens + inner.tokens,
    )


def compile_variants(csm: ComponentSpec) -> VariantResolver:
    """
    Compile a CSM's variant declarations into a resolver.

    Args:
        csm: Component specification

    Returns:
        VariantResolver

    Raises:
        MissingDefaultVariantError: If any axis lacks a default
    """
    axes: list[_Axis] = []
    for axis in csm.variants:
        if axis.default is None:
            raise MissingDefaultVariantError(axis.name, csm.id)
        axes.append(
            _Axis(
                name=axis.name,
                default=axis.default,
                values=tuple(
                    (value, ResolvedBlock.of(f"variant:{axis.name}:{value}", block))
                    for value, block in axis.values.items()
                ),
            )
        )

    compounds = tuple(
        _Compound(
            when=tuple(rule.when.items()),
            block=ResolvedBlock.of(f"compound:{index}", rule),
        )
        for index, rule in enumerate(csm.compound_variants)
    )

    states = tuple(
        _State(
            name=state.name,
            kind=state.kind,
            block=ResolvedBlock.of(f"state:{state.name}", state),
            values=tuple(
                (value, ResolvedBlock.of(f"state:{state.name}:{value}", block))
                for value, block in state.values.items()
            ),
            exclusive_with=tuple(state.exclusive_with),
            interactive=state.interactive,
        )
        for state in csm.states
    )

    resolver = VariantResolver(
        component_id=csm.id,
        component_version=csm.version,
        base=ResolvedBlock.of("base", csm.base),
        axes=tuple(axes),
        compounds=compounds,
        states=states,
    )
    logger.debug(
        "Compiled %s@%s: %d axes, %d compound rules, %d states",
        csm.id,
        csm.version,
        len(axes),
        len(compounds),
        len(states),
    )
    return resolver
