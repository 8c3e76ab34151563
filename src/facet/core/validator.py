"""
Accessibility Contract Validator.

Checks a generated artifact against the accessibility contract of the CSM it
came from. An artifact moves Pending -> Passed or Pending -> Failed(reasons)
exactly once; only passed artifacts may be published.

The validator reads what the generator recorded (ArtifactSemantics) and
confirms contract attributes also appear literally in the emitted source, so
a template that forgets an attribute is caught even if the summary is wrong.
Contrast comes from token metadata only; no color math happens here.

Checks are registered as rules. Each rule may be limited to some platforms;
rules can be added, replaced or removed at runtime.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .color import required_contrast
from .errors import FacetError
from .ir import Artifact, ComponentSpec, FileKind, ValidationRecord, ValidationStatus
from .roles import NATIVE_ELEMENTS
from .token_transformer import PlatformTokenBinding
from .units import round_dp

logger = logging.getLogger(__name__)

# WCAG 2.2 success criteria the validator covers
WCAG_CRITERIA = {
    "1.4.3": {
        "name": "Contrast (Minimum)",
        "level": "AA",
        "description": "Text has a contrast ratio of at least 4.5:1",
    },
    "1.4.6": {
        "name": "Contrast (Enhanced)",
        "level": "AAA",
        "description": "Text has a contrast ratio of at least 7:1",
    },
    "1.4.11": {
        "name": "Non-text Contrast",
        "level": "AA",
        "description": "UI components have a contrast ratio of at least 3:1",
    },
    "2.1.1": {
        "name": "Keyboard",
        "level": "A",
        "description": "All functionality is operable through a keyboard",
    },
    "2.4.7": {
        "name": "Focus Visible",
        "level": "AA",
        "description": "Keyboard focus indicator is visible",
    },
    "2.5.5": {
        "name": "Target Size (Enhanced)",
        "level": "AAA",
        "description": "Pointer targets are at least 44 by 44 CSS pixels",
    },
    "2.5.8": {
        "name": "Target Size (Minimum)",
        "level": "AA",
        "description": "Pointer targets are at least 24 by 24 CSS pixels",
    },
    "4.1.2": {
        "name": "Name, Role, Value",
        "level": "A",
        "description": "Name and role can be programmatically determined",
    },
}

CONTRAST_CRITERION = {"A": "1.4.11", "AA": "1.4.3", "AAA": "1.4.6"}

TOKEN_USAGE_CRITERION = "Design Token Usage"

# Literal colors and pixel spacing that should have been token references
_HARD_CODED_COLOR = re.compile(r"#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{3,4})\b|\b(?:rgba?|hsla?)\(")
_HARD_CODED_SPACING = re.compile(r"\b(?:padding|margin|gap)(?:-[a-z]+)?\s*:\s*-?\d+(?:\.\d+)?px")

# Emitted files that must take values from tokens
_TOKEN_CHECKED_KINDS = frozenset({FileKind.COMPONENT, FileKind.STYLES})


def _criterion(number: str) -> str:
    return f"{number} {WCAG_CRITERIA[number]['name']}"


def _names_attribute(source: str, name: str) -> bool:
    """True if ``name`` appears as a whole attribute name (not a prefix of a longer one)."""
    return re.search(rf"(?<![\w-]){re.escape(name)}(?![\w-])", source) is not None


@dataclass
class ContractCheck:
    """Outcome of one group of checks."""

    criterion: str
    reasons: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.reasons


RuleCheck = Callable[[Artifact, ComponentSpec, PlatformTokenBinding], ContractCheck | None]


@dataclass(frozen=True)
class ValidationRule:
    """
    A registered check.

    ``check`` returns None when the rule does not apply to the CSM.
    ``platforms`` limits the rule to those targets; None means every target.
    """

    id: str
    check: RuleCheck
    platforms: frozenset[str] | None = None
    description: str = ""

    def applies_to(self, platform: str | None) -> bool:
        return platform is None or self.platforms is None or platform in self.platforms


class AccessibilityValidator:
    """
    Validates artifacts against their CSM's accessibility contract.

    Safe to share between worker threads; rule changes apply to evaluations
    that start afterwards.
    """

    def __init__(self, rules: Iterable[ValidationRule] | None = None):
        self._lock = threading.Lock()
        self._rules: dict[str, ValidationRule] = {}
        for rule in self.default_rules() if rules is None else rules:
            self.add_rule(rule)

    def default_rules(self) -> list[ValidationRule]:
        return [
            ValidationRule("name-role-value", self.check_name_role, description="Role and ARIA attributes emitted"),
            ValidationRule("contrast", self.check_contrast, description="Foreground/background contrast per theme"),
            ValidationRule("target-size", self.check_target_size, description="Minimum interactive size"),
            ValidationRule("keyboard", self.check_keyboard, description="Focusable and operable by keyboard"),
            ValidationRule("focus-visible", self.check_focus_visible, description="Visible focus indicator"),
            ValidationRule(
                "design-token-usage",
                self.check_token_usage,
                description="No hard-coded colors or spacing in emitted source",
            ),
        ]

    # -------------------------------------------------------------------------
    # Rule registry
    # -------------------------------------------------------------------------

    def add_rule(self, rule: ValidationRule) -> None:
        """Register a rule, replacing any rule with the same id in place."""
        with self._lock:
            self._rules[rule.id] = rule
        logger.debug("Validation rule registered: %s", rule.id)

    def remove_rule(self, rule_id: str) -> bool:
        """Unregister a rule. Returns False if no such rule was registered."""
        with self._lock:
            return self._rules.pop(rule_id, None) is not None

    def get_rules(self, platform: str | None = None) -> list[ValidationRule]:
        """Registered rules in registration order, optionally only those for a platform."""
        with self._lock:
            rules = list(self._rules.values())
        return [rule for rule in rules if rule.applies_to(platform)]

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ValidationRecord:
        """
        Run every applicable rule and build a final record.

        Args:
            artifact: Generated artifact
            csm: The CSM the artifact was generated from
            tokens: Token binding used for generation (carries contrast metadata)
        """
        checks = [rule.check(artifact, csm, tokens) for rule in self.get_rules(artifact.key.platform)]
        ran = [c for c in checks if c is not None]
        reasons = [reason for c in ran for reason in c.reasons]
        return ValidationRecord(
            status=ValidationStatus.FAILED if reasons else ValidationStatus.PASSED,
            reasons=reasons,
            checks=[c.criterion for c in ran],
        )

    def validate(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> Artifact:
        """
        Move a pending artifact to passed or failed.

        Returns:
            A copy of the artifact carrying the validation record

        Raises:
            FacetError: If the artifact was already validated
        """
        if artifact.validation.status != ValidationStatus.PENDING:
            raise FacetError(f"artifact {artifact.key} was already validated ({artifact.validation.status})")
        record = self.evaluate(artifact, csm, tokens)
        if record.passed:
            logger.debug("Validated %s: %d checks passed", artifact.key, len(record.checks))
        else:
            logger.info("Validation failed for %s: %s", artifact.key, "; ".join(record.reasons))
        return artifact.with_validation(record)

    def validate_batch(
        self, items: Iterable[tuple[Artifact, ComponentSpec, PlatformTokenBinding]]
    ) -> list[Artifact]:
        """Validate several artifacts, in order."""
        return [self.validate(artifact, csm, tokens) for artifact, csm, tokens in items]

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_name_role(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        """Role and ARIA attributes, in the summary and in the source text."""
        contract = csm.accessibility
        if contract.role is None and not contract.aria:
            return None
        semantics = artifact.semantics
        source = artifact.source()
        check = ContractCheck(_criterion("4.1.2"))

        if contract.role is not None:
            native = NATIVE_ELEMENTS.get(contract.role) == semantics.root_element
            if not native and "role" not in semantics.attributes:
                check.reasons.append(f"role {contract.role} missing")

        for attr in contract.aria:
            if attr.state is None:
                emitted = attr.name in semantics.attributes
                where = ""
            else:
                emitted = attr.name in semantics.state_attributes.get(attr.state, {})
                where = f" while {attr.state}"
            if not emitted:
                check.reasons.append(f"{attr.name} missing{where}")
            elif not _names_attribute(source, semantics.attribute_names.get(attr.name, attr.name)):
                check.reasons.append(f"{attr.name} not in source")
        return check

    def check_contrast(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        """Every foreground/background pair, in every theme, from token metadata."""
        pairs = artifact.semantics.color_pairs
        if not pairs:
            return None
        level = str(csm.accessibility.wcag_level)
        required = required_contrast(level)
        check = ContractCheck(_criterion(CONTRAST_CRITERION[level]))
        for pair in pairs:
            entry = tokens.entries.get(pair.foreground)
            for theme in tokens.themes:
                ratio = entry.contrast.get(theme, {}).get(pair.background) if entry else None
                where = f"({pair.foreground} on {pair.background}, theme {theme})"
                if ratio is None:
                    check.reasons.append(f"contrast unknown {where}")
                elif ratio < required:
                    check.reasons.append(f"contrast {ratio:g}:1 < required {required:g}:1 {where}")
        return check

    def check_target_size(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        """Effective minimum size against the contract, in whole dp."""
        target = csm.accessibility.min_target
        if target is None:
            return None
        level = str(csm.accessibility.wcag_level)
        check = ContractCheck(_criterion("2.5.5" if level == "AAA" else "2.5.8"))
        size = artifact.semantics.min_size
        for dim in ("height", "width"):
            wanted = getattr(target, dim)
            if wanted is None:
                continue
            required = round_dp(wanted)
            actual = getattr(size, dim) if size is not None else None
            if actual is None:
                check.reasons.append(f"min-{dim} missing<{required}")
            elif actual < required:
                check.reasons.append(f"min-{dim} {actual:g}<{required}")
        return check

    def check_keyboard(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        """Focusability, required keys, and operability in every interactive state."""
        contract = csm.accessibility
        if not contract.is_interactive:
            return None
        semantics = artifact.semantics
        check = ContractCheck(_criterion("2.1.1"))
        if not semantics.native_focusable and "tabindex" not in semantics.attributes:
            check.reasons.append("keyboard focus unreachable")
        for interaction in contract.keyboard:
            if interaction.key not in semantics.key_handlers:
                check.reasons.append(f"keyboard {interaction.key} not handled")
        for state in contract.interactive_states:
            if state not in semantics.focusable_states:
                check.reasons.append(f"keyboard inoperable while {state}")
        return check

    def check_focus_visible(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        if not csm.accessibility.focus_visible:
            return None
        check = ContractCheck(_criterion("2.4.7"))
        if not artifact.semantics.focus_ring or "focus-visible" not in artifact.source():
            check.reasons.append("focus indicator missing")
        return check

    def check_token_usage(
        self,
        artifact: Artifact,
        csm: ComponentSpec,
        tokens: PlatformTokenBinding,
    ) -> ContractCheck | None:
        """Component and style files take colors and spacing from tokens, never literals."""
        check = ContractCheck(TOKEN_USAGE_CRITERION)
        for f in artifact.files:
            if f.kind not in _TOKEN_CHECKED_KINDS:
                continue
            for match in _HARD_CODED_COLOR.finditer(f.content):
                check.reasons.append(f"hard-coded color {match.group(0).rstrip('(')} in {f.path}")
            for match in _HARD_CODED_SPACING.finditer(f.content):
                check.reasons.append(f"hard-coded spacing '{match.group(0)}' in {f.path}")
        return check
