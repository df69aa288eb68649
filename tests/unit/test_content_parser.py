"""
Unit Tests for Content Parsing
==============================

Tests for the per-field recovering content parser and serialization.
"""

import json

import pytest

from storefront.core.content.parser import (
    ContentDocumentParser,
    default_preset_name,
    parse_content,
    serialize_content,
)
from storefront.models.schemas import (
    BackgroundType,
    ContentDocument,
    ElementState,
    PresetKind,
    default_title_style,
)

from tests.utils.assertions import assert_sparse_states
from tests.utils.data_generators import ContentDataGenerator


class TestContentDecoding:
    """Test handling of the raw persisted value."""

    @pytest.fixture
    def parser(self):
        return ContentDocumentParser()

    @pytest.mark.parametrize("raw", [None, "", "   ", {}])
    def test_empty_input_gives_default_document(self, parser, raw):
        """Test that a new store parses to the default document."""
        result = parser.parse(raw)
        assert result.success
        assert result.document == ContentDocument()
        assert result.warnings == []

    def test_invalid_json_recovers(self, parser):
        """Test that unreadable JSON yields defaults and one warning."""
        result = parser.parse('{"hero": {"title": "x"')
        assert not result.success
        assert result.document == ContentDocument()
        assert len(result.warnings) == 1
        assert "invalid JSON" in result.warnings[0]

    def test_non_object_json(self, parser):
        """Test a JSON value that is not an object."""
        result = parser.parse("[1, 2]")
        assert not result.success
        assert "expected an object" in result.warnings[0]

    def test_bytes_input(self, parser):
        """Test UTF-8 bytes from the record store."""
        result = parser.parse('{"hero": {"title": "Café"}}'.encode("utf-8"))
        assert result.document.hero.title == "Café"


class TestSectionRecovery:
    """Test that bad fields fall back to defaults one at a time."""

    def test_invalid_field_is_dropped_with_warning(self):
        """Test that one bad hero field keeps the rest."""
        result = parse_content({"hero": {"title": 42, "buttonText": "Buy"}})
        assert result.document.hero.title == ""
        assert result.document.hero.button_text == "Buy"
        assert any(w.startswith("hero.title") for w in result.warnings)

    def test_null_text_means_default(self):
        """Test that null hero text is treated as not customized."""
        result = parse_content({"hero": {"title": None, "buttonText": None}})
        assert result.success
        assert result.document.hero.button_text == "Shop Now"

    def test_partial_style_merges_onto_slot_default(self):
        """Test that a stored style only overrides what it sets."""
        result = parse_content({"hero": {"titleStyle": {"fontSize": 48, "color": "#ff0000"}}})
        style = result.document.hero.title_style
        assert style.font_size == "48"
        assert style.color == "#ff0000"
        assert style.font_weight == default_title_style().font_weight

    def test_invalid_version(self):
        """Test that a bad version keeps the default version."""
        result = parse_content({"version": "two", "hero": {"title": "Ok"}})
        assert result.document.version == 1
        assert result.document.hero.title == "Ok"
        assert any(w.startswith("version") for w in result.warnings)

    def test_background_bare_colour(self):
        """Test the older bare colour background form."""
        result = parse_content({"background": "#fafafa"})
        assert result.document.background.type == BackgroundType.COLOR
        assert result.document.background.color == "#fafafa"

    def test_background_invalid_type(self):
        """Test that an unknown background type falls back to colour."""
        result = parse_content({"background": {"type": "video", "color": "#000000"}})
        assert result.document.background.type == BackgroundType.COLOR
        assert result.document.background.color == "#000000"
        assert result.warnings

    def test_element_states_legacy_forms(self):
        """Test display-based states and string offsets from older documents."""
        result = parse_content(ContentDataGenerator.legacy_payload())
        states = result.document.element_states
        assert states["h1-old-title"].hidden and not states["h1-old-title"].deleted
        assert states["p-gone"].deleted and not states["p-gone"].hidden
        assert states["button-cta"].offset_left == 12.0
        assert states["button-cta"].offset_top == 0.0
        assert "p-untouched" not in states
        assert_sparse_states(states)

    def test_element_state_with_bad_field(self):
        """Test that a bad state field is dropped, not the whole map."""
        result = parse_content({"elementStates": {"h1-a": {"hidden": "yes", "offsetLeft": 5}, "h2-b": {"deleted": True}}})
        assert result.document.element_states["h1-a"] == ElementState(offset_left=5)
        assert result.document.element_states["h2-b"].deleted
        assert any("elementStates.h1-a" in w for w in result.warnings)

    def test_element_states_not_an_object(self):
        """Test a malformed state map."""
        result = parse_content({"elementStates": ["h1"], "hero": {"title": "Kept"}})
        assert result.document.element_states == {}
        assert result.document.hero.title == "Kept"

    def test_presets_get_default_names(self):
        """Test unnamed presets and skipping of malformed entries."""
        result = parse_content(
            {
                "presets": {
                    "title": [{"style": {"fontSize": "2rem"}}, {"name": "Bold", "style": {"fontWeight": "bold"}}],
                    "button": "not-a-list",
                }
            }
        )
        titles = result.document.presets.title
        assert [p.name for p in titles] == ["title preset 1", "Bold"]
        assert titles[0].style.font_size == "2rem"
        assert result.document.presets.button == []
        assert "presets.button: expected a list" in result.warnings

    def test_default_preset_name(self):
        """Test preset naming."""
        assert default_preset_name(PresetKind.SUBTITLE, 2) == "subtitle preset 3"


class TestSerialization:
    """Test the persisted form."""

    def test_serialized_keys_are_camel_case(self):
        """Test wire field names."""
        data = json.loads(serialize_content(ContentDataGenerator.customized()))
        assert data["hero"]["buttonText"] == "Browse Pieces"
        assert "titleStyle" in data["hero"]
        assert data["background"]["color"] == "#112233"
        assert data["elementStates"] == {}

    def test_default_states_are_omitted(self):
        """Test that only deviating states are written."""
        document = ContentDataGenerator.with_states(
            {"h1-a": ElementState(hidden=True), "p-b": ElementState(), "p-c": ElementState(offset_top=-4)}
        )
        data = json.loads(serialize_content(document))
        assert set(data["elementStates"]) == {"h1-a", "p-c"}
        assert data["elementStates"]["p-c"]["offsetTop"] == -4.0

    def test_round_trip_preserves_document(self):
        """Test serialize then parse for a customized document."""
        document = ContentDataGenerator.with_states(
            {"h1-a": ElementState(deleted=True), "p-c": ElementState(offset_left=10, offset_top=20)},
            base=ContentDataGenerator.customized(),
        )
        result = parse_content(serialize_content(document))
        assert result.success
        assert result.document == document
