"""
Unit Tests for Style Presets
============================
"""

from storefront.core.content.presets import add_preset, apply_preset, find_preset, remove_preset
from storefront.models.schemas import ContentDocument, PresetKind, StyleOverrides, default_title_style


class TestPresets:
    """Test adding, removing and applying presets."""

    def test_add_preset_defaults_to_current_style(self):
        """Test saving the slot's current style under a default name."""
        content = ContentDocument()
        updated = add_preset(content, PresetKind.TITLE)
        preset = updated.presets.title[0]
        assert preset.name == "title preset 1"
        assert preset.style.font_size == default_title_style().font_size
        assert content.presets.title == []

    def test_add_preset_with_name_and_style(self):
        """Test an explicit preset."""
        updated = add_preset(
            ContentDocument(), PresetKind.BUTTON, StyleOverrides(background_color="#222222"), name="  Dark  "
        )
        assert updated.presets.button[0].name == "Dark"
        assert updated.presets.button[0].style.background_color == "#222222"

    def test_default_names_count_up(self):
        """Test sequential default names."""
        content = add_preset(add_preset(ContentDocument(), PresetKind.SUBTITLE), PresetKind.SUBTITLE)
        assert [p.name for p in content.presets.subtitle] == ["subtitle preset 1", "subtitle preset 2"]

    def test_apply_preset_merges_only_set_fields(self):
        """Test that applying keeps fields the preset does not set."""
        content = add_preset(ContentDocument(), PresetKind.TITLE, StyleOverrides(color="#ff0000"), name="Red")
        applied = apply_preset(content, PresetKind.TITLE, "Red")
        assert applied.hero.title_style.color == "#ff0000"
        assert applied.hero.title_style.font_size == default_title_style().font_size
        assert content.hero.title_style.color == default_title_style().color

    def test_apply_preset_by_index(self):
        """Test lookup by position."""
        content = add_preset(ContentDocument(), PresetKind.BUTTON, StyleOverrides(font_size="2rem"))
        applied = apply_preset(content, PresetKind.BUTTON, 0)
        assert applied.hero.button_style.font_size == "2rem"

    def test_apply_unknown_preset_is_noop(self):
        """Test that a missing preset leaves the document unchanged."""
        content = ContentDocument()
        assert apply_preset(content, PresetKind.TITLE, "Missing") == content
        assert find_preset(content, PresetKind.TITLE, 3) is None

    def test_remove_preset(self):
        """Test removal by index, ignoring out-of-range indexes."""
        content = add_preset(ContentDocument(), PresetKind.TITLE, name="A")
        content = add_preset(content, PresetKind.TITLE, name="B")
        removed = remove_preset(content, PresetKind.TITLE, 0)
        assert [p.name for p in removed.presets.title] == ["B"]
        assert remove_preset(removed, PresetKind.TITLE, 5) == removed
