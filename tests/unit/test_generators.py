"""
Tests for platform generators.

Every target is generated from the same CSM and token revision; the
embedded style tables must agree, artifacts must be deterministic and
contracts a target cannot express must be refused.
"""

import json
import re

import pytest

from facet.core.errors import CapabilityGapError, FacetError, MissingTokenError, UnknownPlatformError
from facet.core.ir import ComponentSpec, FileKind, ValidationStatus
from facet.core.token_transformer import transform
from facet.core.validator import AccessibilityValidator
from facet.core.variant_compiler import compile_variants
from facet.platforms import GeneratorRegistry, get_generator, get_registry, list_platforms
from facet.platforms.base import Capability
from facet.platforms.react import ReactGenerator

WEB_PLATFORMS = ["react", "vue", "svelte", "angular", "vanilla"]
ALL_PLATFORMS = WEB_PLATFORMS + ["react-native"]

_TABLE_RE = re.compile(r"export const TABLE(?:: StyleTable)? = (.*?);\n\nexport const FLOOR", re.DOTALL)


def _generate(csm, token_set, platform, **options):
    generator = get_generator(platform, **options)
    binding = transform(token_set, platform, generator.token_style)
    return generator.generate(csm, compile_variants(csm), binding), binding


def _without_focus_ring(csm: ComponentSpec) -> ComponentSpec:
    contract = csm.accessibility.model_copy(update={"focus_visible": False})
    return csm.model_copy(update={"accessibility": contract})


def _style_table(artifact) -> dict:
    for f in artifact.files:
        if ".styles." in f.path:
            match = _TABLE_RE.search(f.content)
            assert match, f"no style table in {f.path}"
            return json.loads(match.group(1))
    raise AssertionError("artifact has no styles module")


def _styles_only(table: dict) -> dict:
    """Drop token references, which are platform specific."""
    return {
        "base": table["base"]["styles"],
        "axes": [(a["name"], a["default"], {v: b["styles"] for v, b in a["values"].items()}) for a in table["axes"]],
        "compounds": [(c["when"], c["styles"]) for c in table["compounds"]],
        "states": [(s["name"], s["styles"], {v: b["styles"] for v, b in s["values"].items()}) for s in table["states"]],
    }


# ── Registry ────────────────────────────────────────────────────────────────


class TestGeneratorRegistry:
    """Discovery and lookup of platform generators."""

    def test_builtins_discovered(self):
        assert set(ALL_PLATFORMS) <= set(list_platforms())

    def test_unknown_platform(self):
        with pytest.raises(UnknownPlatformError, match="Platform 'qt' not found. Available platforms:"):
            get_generator("qt")

    def test_register_custom(self):
        class TightReact(ReactGenerator):
            platform = "tight-react"

        registry = GeneratorRegistry()
        registry.register("tight-react", TightReact)
        assert "tight-react" in registry
        assert isinstance(registry.get("tight-react"), TightReact)

    def test_duplicate_registration(self):
        registry = GeneratorRegistry()
        registry.register("react", ReactGenerator)
        with pytest.raises(FacetError, match="already registered"):
            registry.register("react", ReactGenerator)

    def test_rejects_non_generator(self):
        with pytest.raises(FacetError, match="must extend PlatformGenerator"):
            GeneratorRegistry().register("bogus", dict)

    def test_capabilities(self):
        capabilities = get_registry().capabilities()
        assert capabilities["react-native"].units == "dp"
        assert Capability.FOCUS_RING not in capabilities["react-native"].features
        assert Capability.FOCUS_RING in capabilities["vue"].features


# ── Files ───────────────────────────────────────────────────────────────────


class TestFiles:
    @pytest.mark.parametrize(
        ("platform", "expected"),
        [
            ("react", {"Button.tsx", "Button.styles.ts", "Button.css", "tokens.css"}),
            ("vue", {"Button.vue", "Button.styles.ts", "tokens.css"}),
            ("svelte", {"Button.svelte", "Button.styles.ts", "tokens.css"}),
            (
                "angular",
                {"button.component.ts", "button.component.scss", "button.styles.ts", "tokens.css", "_tokens.scss"},
            ),
            ("vanilla", {"facet-button.js", "Button.styles.js", "tokens.css"}),
        ],
    )
    def test_web_files(self, button_spec, token_set, platform, expected):
        artifact, _ = _generate(button_spec, token_set, platform)
        assert {f.path for f in artifact.files} == expected

    def test_react_native_files(self, link_spec, token_set):
        artifact, _ = _generate(link_spec, token_set, "react-native")
        assert {f.path for f in artifact.files} == {"Link.tsx", "Link.styles.ts", "tokens.ts"}

    def test_no_focus_css_without_focus_contract(self, link_spec, token_set):
        artifact, _ = _generate(link_spec, token_set, "react")
        assert artifact.get_file("Link.css") is None

    def test_artifact_is_pending(self, button_spec, token_set):
        artifact, _ = _generate(button_spec, token_set, "vue")
        assert artifact.validation.status == ValidationStatus.PENDING
        assert str(artifact.key) == "button@vue:1.0.0+2024.1"
        assert artifact.manifest.generator == "VueGenerator"

    def test_docs(self, button_spec, token_set):
        artifact, _ = _generate(button_spec, token_set, "svelte", include_docs=True)
        readme = artifact.get_file("README.md")
        assert readme is not None
        assert readme.kind == FileKind.DOCS
        assert readme.content.startswith("# Button")
        assert "- Enter fires `onPress`" in readme.content
        assert "| `size` | md, lg | `md` |" in readme.content


# ── Cross-platform parity ───────────────────────────────────────────────────


class TestParity:
    """Every target embeds the same resolution table."""

    def test_same_styles_everywhere(self, button_spec, token_set):
        csm = _without_focus_ring(button_spec)
        expected = _styles_only(compile_variants(csm).to_table())
        for platform in ALL_PLATFORMS:
            artifact, _ = _generate(csm, token_set, platform)
            assert _styles_only(_style_table(artifact)) == expected, platform

    def test_token_references_per_platform(self, link_spec, token_set):
        web, _ = _generate(link_spec, token_set, "react")
        native, _ = _generate(link_spec, token_set, "react-native")
        assert _style_table(web)["base"]["tokens"]["backgroundColor"] == "var(--color-surface)"
        assert _style_table(native)["base"]["tokens"]["backgroundColor"] == "color.surface"

    def test_floor(self, button_spec, token_set):
        react, _ = _generate(button_spec, token_set, "react")
        vue, _ = _generate(button_spec, token_set, "vue")
        native, _ = _generate(_without_focus_ring(button_spec), token_set, "react-native")
        assert 'export const FLOOR: Record<string, string> = {"minHeight": "2.75rem"};' in react.source()
        assert 'export const FLOOR: Record<string, string> = {"min-height": "2.75rem"};' in vue.source()
        assert 'export const FLOOR: Record<string, number> = {"minHeight": 44};' in native.source()


class TestDeterminism:
    @pytest.mark.parametrize("platform", WEB_PLATFORMS)
    def test_same_inputs_same_bytes(self, button_spec, token_set, platform):
        first, _ = _generate(button_spec, token_set, platform)
        second, _ = _generate(button_spec, token_set, platform)
        assert first.files == second.files
        assert first.manifest.digest == second.manifest.digest

    def test_react_native_same_bytes(self, link_spec, token_set):
        first, _ = _generate(link_spec, token_set, "react-native")
        second, _ = _generate(link_spec, token_set, "react-native")
        assert first.files == second.files
        assert first.manifest.digest == second.manifest.digest

    def test_digest_tracks_tokens(self, button_spec, token_set):
        first, _ = _generate(button_spec, token_set, "react")
        revised = token_set.model_copy(update={"revision": "2024.2"})
        second, _ = _generate(button_spec, revised, "react")
        assert first.manifest.digest != second.manifest.digest


# ── Contract ────────────────────────────────────────────────────────────────


class TestContract:
    """Generated artifacts keep the accessibility contract."""

    @pytest.mark.parametrize("platform", WEB_PLATFORMS)
    def test_button_passes_on_web(self, button_spec, token_set, platform):
        artifact, binding = _generate(button_spec, token_set, platform)
        validated = AccessibilityValidator().validate(artifact, button_spec, binding)
        assert validated.validation.reasons == []
        assert validated.validation.passed

    @pytest.mark.parametrize("platform", ALL_PLATFORMS)
    def test_aria_emitted(self, button_spec, token_set, platform):
        csm = _without_focus_ring(button_spec)
        artifact, binding = _generate(csm, token_set, platform)
        source = artifact.source()
        for name in ("aria-label", "aria-disabled", "aria-pressed"):
            emitted = artifact.semantics.attribute_names.get(name, name)
            assert emitted in source, f"{name} missing on {platform}"
        assert artifact.semantics.state_attributes["disabled"]["aria-disabled"]
        assert AccessibilityValidator().validate(artifact, csm, binding).validation.passed

    def test_non_native_root_gets_role_and_tabindex(self, token_set):
        csm = ComponentSpec.model_validate(
            {
                "id": "toggle",
                "version": "1.0.0",
                "props": [{"name": "onToggle", "type": "event"}],
                "accessibility": {
                    "role": "switch",
                    "aria": [{"name": "aria-checked", "value": "false"}],
                    "keyboard": [{"key": "Space", "action": "onToggle"}],
                },
            }
        )
        artifact, binding = _generate(csm, token_set, "react")
        assert artifact.semantics.root_element == "div"
        assert artifact.semantics.attributes["role"] == '"switch"'
        assert "tabIndex={inactive ? -1 : 0}" in artifact.source()
        assert "case \" \":" in artifact.source()
        assert AccessibilityValidator().validate(artifact, csm, binding).validation.passed

    def test_react_native_refuses_focus_ring(self, button_spec, token_set):
        with pytest.raises(CapabilityGapError) as exc_info:
            _generate(button_spec, token_set, "react-native")
        assert exc_info.value.requirement == "focus-visible"
        assert exc_info.value.platform == "react-native"
        assert str(exc_info.value) == "button@react-native: platform cannot express required 'focus-visible'"

    def test_react_native_refuses_other_keys(self, token_set):
        csm = ComponentSpec.model_validate(
            {
                "id": "sheet",
                "version": "1.0.0",
                "props": [{"name": "onClose", "type": "event"}],
                "accessibility": {"role": "dialog", "keyboard": [{"key": "Escape", "action": "onClose"}]},
            }
        )
        with pytest.raises(CapabilityGapError, match="key Escape"):
            _generate(csm, token_set, "react-native")

    def test_react_native_refuses_unsupported_aria(self, token_set):
        csm = ComponentSpec.model_validate(
            {
                "id": "hint",
                "version": "1.0.0",
                "accessibility": {"aria": [{"name": "aria-describedby", "value": "tip"}]},
            }
        )
        with pytest.raises(CapabilityGapError, match="aria-describedby"):
            _generate(csm, token_set, "react-native")

    def test_missing_token(self, token_set):
        csm = ComponentSpec.model_validate(
            {"id": "badge", "version": "1.0.0", "base": {"tokens": {"color": "color.brand"}}}
        )
        for platform in ALL_PLATFORMS:
            with pytest.raises(MissingTokenError, match="color.brand"):
                _generate(csm, token_set, platform)

    def test_target_floor_override(self, chip_spec, token_set):
        class LooseReact(ReactGenerator):
            platform = "loose-react"

            def target_floor(self, csm):
                return {"min-height": 40}

        generator = LooseReact()
        binding = transform(token_set, generator.platform)
        artifact = generator.generate(chip_spec, compile_variants(chip_spec), binding)
        assert artifact.semantics.min_size.height == 40
        record = AccessibilityValidator().validate(artifact, chip_spec, binding).validation
        assert record.reasons == ["min-height 40<44"]


# ── React Native ────────────────────────────────────────────────────────────


class TestReactNative:
    """Identifiers and toggle state on a target without class names or aria-pressed."""

    def test_pressed_carried_by_checked(self, button_spec, token_set):
        artifact, _ = _generate(_without_focus_ring(button_spec), token_set, "react-native")
        source = artifact.get_file("Button.tsx").content
        assert "aria-checked={pressed ? true : undefined}" in source
        assert "aria-pressed" not in source
        assert artifact.semantics.state_attributes["pressed"]["aria-pressed"] == "{true}"

    def test_pressed_with_checked_refused(self, token_set):
        csm = ComponentSpec.model_validate(
            {
                "id": "toggle",
                "version": "1.0.0",
                "states": [{"name": "on", "styles": ["bg-primary"]}],
                "accessibility": {
                    "role": "switch",
                    "aria": [
                        {"name": "aria-pressed", "state": "on"},
                        {"name": "aria-checked", "state": "on"},
                    ],
                },
            }
        )
        with pytest.raises(CapabilityGapError, match="aria-pressed with aria-checked"):
            _generate(csm, token_set, "react-native")

    def test_no_class_names(self, link_spec, token_set):
        artifact, _ = _generate(link_spec, token_set, "react-native")
        component = artifact.get_file("Link.tsx").content
        assert "className" not in component
        assert "style={nativeStyle(classes, tokens, theme, FLOOR)}" in component

    def test_identifiers_become_style_objects(self, button_spec, token_set):
        artifact, _ = _generate(_without_focus_ring(button_spec), token_set, "react-native")
        styles = artifact.get_file("Button.styles.ts").content
        match = re.search(r"export const STYLES: Record<string, NativeStyle> = (.*?);\n", styles, re.DOTALL)
        assert match
        table = json.loads(match.group(1))
        assert table["opacity-50"] == {"opacity": 0.5}
        assert table["h-14"] == {"height": 56}
        assert table["items-center"] == {"alignItems": "center"}
        assert "bg-primary" not in table
        assert "// Supplied by the application through registerStyles: bg-primary, ring-1, shadow-inner" in styles
        assert "export function registerStyles(" in styles

    def test_disabled_changes_style(self, button_spec, token_set):
        resolver = compile_variants(button_spec)
        assert "opacity-50" not in resolver.resolve()
        assert resolver.resolve(states={"disabled": True})[-1] == "opacity-50"

        artifact, _ = _generate(_without_focus_ring(button_spec), token_set, "react-native")
        disabled = next(s for s in _style_table(artifact)["states"] if s["name"] == "disabled")
        assert disabled["styles"] == ["opacity-50"]
        assert '"opacity-50": {\n    "opacity": 0.5\n  }' in artifact.get_file("Button.styles.ts").content
