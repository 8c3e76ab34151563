"""Tests for loading component specs and token revisions."""

import json
from pathlib import Path

import pytest
import yaml

from facet.core.dtcg_export import export_dtcg_file, generate_dtcg_tokens
from facet.core.errors import SourceIOError, SpecLoadError
from facet.core.ir import TokenKind, TokenRole
from facet.core.spec_loader import (
    RetryPolicy,
    SpecSource,
    load_component,
    load_token_set,
    parse_component,
    parse_token_set,
    read_text,
)


def _component(**fields) -> dict:
    return {"id": "widget", "version": "1.0.0", **fields}


# ── Components ──────────────────────────────────────────────────────────────


class TestParseComponent:
    """Schema validation of CSM documents."""

    def test_fixture(self, button_spec):
        assert button_spec.display_name == "Button"
        assert [a.name for a in button_spec.variants] == ["size", "intent"]
        assert button_spec.referenced_tokens() == [
            "color.on-primary",
            "color.primary",
            "spacing.4",
            "size.12",
            "size.14",
            "color.surface",
        ]

    def test_unknown_field(self):
        with pytest.raises(SpecLoadError, match="colour"):
            parse_component(_component(colour="red"))

    def test_unknown_nested_field(self):
        with pytest.raises(SpecLoadError, match="accessibility.tabIndex"):
            parse_component(_component(accessibility={"tabIndex": 0}))

    @pytest.mark.parametrize(
        "fields",
        [
            {"props": [{"name": "useTheme", "type": "string"}]},
            {"states": [{"name": "componentDidMount"}]},
            {"slots": [{"name": "render"}]},
        ],
    )
    def test_framework_names_rejected(self, fields):
        with pytest.raises(SpecLoadError, match="names a framework API"):
            parse_component(_component(**fields))

    def test_aria_needs_known_prop(self):
        with pytest.raises(SpecLoadError, match="references unknown prop 'title'"):
            parse_component(_component(accessibility={"aria": [{"name": "aria-label", "prop": "title"}]}))

    def test_keyboard_action_must_be_event(self):
        with pytest.raises(SpecLoadError, match="not an event prop"):
            parse_component(
                _component(
                    props=[{"name": "label", "type": "string"}],
                    accessibility={"keyboard": [{"key": "Enter", "action": "label"}]},
                )
            )

    def test_compound_rule_needs_known_axis(self):
        with pytest.raises(SpecLoadError, match="unknown axis 'tone'"):
            parse_component(_component(compound_variants=[{"when": {"tone": "loud"}, "styles": ["x"]}]))

    def test_interactive_state_must_exist(self):
        with pytest.raises(SpecLoadError, match="interactive state 'hover' is not a declared state"):
            parse_component(_component(accessibility={"interactive_states": ["hover"]}))

    def test_bad_default(self):
        with pytest.raises(SpecLoadError, match="default 'xl' of axis 'size'"):
            parse_component(_component(variants=[{"name": "size", "default": "xl", "values": {"md": []}}]))

    def test_error_carries_file(self, tmp_path):
        path = tmp_path / "widget.yaml"
        path.write_text(yaml.safe_dump(_component(colour="red")))
        with pytest.raises(SpecLoadError) as exc_info:
            load_component(path)
        assert exc_info.value.context.file == path
        assert exc_info.value.context.component == "widget"

    def test_json_document(self, tmp_path):
        path = tmp_path / "widget.json"
        path.write_text(json.dumps(_component(base=["flex"])))
        assert load_component(path).base.styles == ["flex"]

    def test_syntax_error(self, tmp_path):
        path = tmp_path / "widget.yaml"
        path.write_text("id: [unclosed\n")
        with pytest.raises(SpecLoadError, match="invalid document syntax"):
            load_component(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "widget.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(SpecLoadError, match="document must be a mapping"):
            load_component(path)


# ── Tokens ──────────────────────────────────────────────────────────────────


class TestParseTokenSet:
    def test_fixture(self, token_set):
        assert token_set.revision == "2024.1"
        assert token_set.themes == ["light", "dark"]
        assert token_set.tokens["size.12"].value("dark") == "48px"
        assert token_set.tokens["font.weight.bold"].kind == TokenKind.FONT_WEIGHT
        assert token_set.tokens["color.surface"].role == TokenRole.BACKGROUND

    def test_revision_from_file_name(self, tmp_path):
        path = tmp_path / "r7.yaml"
        path.write_text(yaml.safe_dump({"tokens": {"spacing.2": {"kind": "dimension", "value": "8px"}}}))
        token_set = load_token_set(path)
        assert token_set.revision == "r7"
        assert token_set.themes == ["light"]

    def test_value_and_values(self):
        with pytest.raises(SpecLoadError, match="both value and values"):
            parse_token_set(
                {"revision": "r1", "tokens": {"color.x": {"kind": "color", "value": "#fff", "values": {"light": "#000"}}}}
            )

    def test_unknown_token_field(self):
        with pytest.raises(SpecLoadError, match="unknown fields: \\['alias'\\]"):
            parse_token_set({"revision": "r1", "tokens": {"color.x": {"kind": "color", "value": "#fff", "alias": "y"}}})

    def test_leaf_without_kind(self):
        with pytest.raises(SpecLoadError, match="token 'color.x' must declare a kind"):
            parse_token_set({"revision": "r1", "tokens": {"color": {"x": "#fff"}}})

    def test_unknown_top_level(self):
        with pytest.raises(SpecLoadError, match="unknown fields: \\['palette'\\]"):
            parse_token_set({"revision": "r1", "tokens": {}, "palette": {}})

    def test_missing_theme_value(self):
        with pytest.raises(SpecLoadError, match="exactly one value per theme"):
            parse_token_set(
                {
                    "revision": "r1",
                    "themes": ["light", "dark"],
                    "tokens": {"color.x": {"kind": "color", "values": {"light": "#fff"}}},
                }
            )

    def test_bad_value(self):
        with pytest.raises(SpecLoadError, match="invalid token set"):
            parse_token_set({"revision": "r1", "tokens": {"size.x": {"kind": "dimension", "value": "wide"}}})


class TestDtcg:
    """tokens.json export loads back unchanged."""

    def test_structure(self, token_set):
        document = generate_dtcg_tokens(token_set)
        primary = document["color"]["primary"]
        assert primary["$type"] == "color"
        assert primary["$value"] == "#1d4ed8"
        assert primary["$extensions"]["facet"]["values"]["dark"] == "#93c5fd"
        assert document["$extensions"]["facet"]["revision"] == "2024.1"

    def test_round_trip(self, token_set):
        assert parse_token_set(generate_dtcg_tokens(token_set)) == token_set

    def test_file_round_trip(self, token_set, tmp_path):
        path = export_dtcg_file(token_set, tmp_path / "out" / "tokens.json")
        assert load_token_set(path) == token_set

    def test_plain_dtcg(self):
        token_set = parse_token_set(
            {"color": {"ink": {"$type": "color", "$value": "#111111", "$description": "Body text"}}},
            revision="ext-1",
        )
        assert token_set.revision == "ext-1"
        assert token_set.tokens["color.ink"].description == "Body text"


# ── Reading ─────────────────────────────────────────────────────────────────


class TestReadText:
    """Transient I/O failures are retried with backoff."""

    def test_retries_then_succeeds(self, tmp_path, monkeypatch):
        path = tmp_path / "doc.yaml"
        path.write_text("id: x\n")
        original = Path.read_text
        calls = []

        def flaky(self, *args, **kwargs):
            calls.append(self)
            if len(calls) < 3:
                raise OSError(5, "Input/output error")
            return original(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", flaky)
        delays = []
        assert read_text(path, RetryPolicy(), sleep=delays.append) == "id: x\n"
        assert delays == [0.05, 0.1]

    def test_gives_up(self, tmp_path, monkeypatch):
        def broken(self, *args, **kwargs):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(Path, "read_text", broken)
        delays = []
        with pytest.raises(SourceIOError, match="could not read after 2 attempts"):
            read_text(tmp_path / "doc.yaml", RetryPolicy(max_attempts=2), sleep=delays.append)
        assert len(delays) == 1

    def test_missing_file_not_retried(self, tmp_path):
        delays = []
        with pytest.raises(SpecLoadError, match="file not found"):
            read_text(tmp_path / "absent.yaml", sleep=delays.append)
        assert delays == []

    def test_delay_capped(self):
        policy = RetryPolicy(initial_delay_seconds=0.5, backoff_coefficient=3.0, max_delay_seconds=1.0)
        assert policy.delay(0) == 0.5
        assert policy.delay(2) == 1.0


# ── Source directory ────────────────────────────────────────────────────────


class TestSpecSource:
    def test_load(self, source):
        assert source.component_ids() == ["button", "chip", "link"]
        assert len(source) == 3
        assert "link" in source
        assert source.tokens.revisions() == ["2024.1"]

    def test_latest_version(self, source, button_spec):
        source.add(button_spec.model_copy(update={"version": "1.10.0"}))
        source.add(button_spec.model_copy(update={"version": "1.2.0"}))
        assert source.versions("button") == ["1.0.0", "1.2.0", "1.10.0"]
        assert source.get("button").version == "1.10.0"
        assert source.get("button", "1.2.0").version == "1.2.0"

    def test_identical_duplicate_accepted(self, source, button_spec):
        assert source.add(button_spec) == button_spec
        assert len(source) == 3

    def test_changed_document_needs_new_version(self, source, button_spec):
        changed = button_spec.model_copy(update={"description": "Changed"})
        with pytest.raises(SpecLoadError, match="version 1.0.0 is already defined by .*button.yaml"):
            source.add(changed)

    def test_unknown_component(self, source):
        with pytest.raises(SpecLoadError, match="Available: \\['button', 'chip', 'link'\\]"):
            source.get("card")

    def test_unknown_version(self, source):
        with pytest.raises(SpecLoadError, match="version 9.0.0 not found"):
            source.get("button", "9.0.0")

    def test_duplicate_across_files(self, tmp_path):
        components = tmp_path / "components"
        components.mkdir()
        (components / "a.yaml").write_text(yaml.safe_dump(_component(description="one")))
        (components / "b.yaml").write_text(yaml.safe_dump(_component(description="two")))
        with pytest.raises(SpecLoadError, match="already defined"):
            SpecSource(components).load()

    def test_missing_directories(self, tmp_path):
        source = SpecSource(tmp_path / "nope", tmp_path / "none").load()
        assert len(source) == 0
        assert source.tokens.revisions() == []
