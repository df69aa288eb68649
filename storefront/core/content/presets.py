"""
Style Presets
=============

Named hero text styles an owner can save and re-apply. All operations return
a new ContentDocument and leave the input untouched.
"""

from typing import Optional, Union

from storefront.config.logging import get_logger
from storefront.core.content.parser import default_preset_name
from storefront.models.schemas import ContentDocument, Preset, PresetKind, StyleOverrides

logger = get_logger(__name__)

_STYLE_FIELDS = {
    PresetKind.TITLE: "title_style",
    PresetKind.SUBTITLE: "subtitle_style",
    PresetKind.BUTTON: "button_style",
}


def add_preset(
    content: ContentDocument,
    kind: PresetKind,
    style: Optional[StyleOverrides] = None,
    name: Optional[str] = None,
) -> ContentDocument:
    """
    Save a preset for one hero slot.

    Args:
        content: Current content document
        kind: Slot the preset targets
        style: Style to save; defaults to the slot's current style
        name: Preset name; defaults to "<kind> preset <n>"

    Returns:
        Updated content document
    """
    updated = content.model_copy(deep=True)
    presets = updated.presets.for_kind(kind)
    if style is None:
        style = StyleOverrides.model_validate(updated.hero.style_for(kind).model_dump())
    preset_name = (name or "").strip() or default_preset_name(kind, len(presets))
    presets.append(Preset(name=preset_name, style=style))
    logger.debug("Preset added", kind=kind.value, name=preset_name)
    return updated


def remove_preset(content: ContentDocument, kind: PresetKind, index: int) -> ContentDocument:
    updated = content.model_copy(deep=True)
    presets = updated.presets.for_kind(kind)
    if 0 <= index < len(presets):
        presets.pop(index)
    return updated


def find_preset(content: ContentDocument, kind: PresetKind, key: Union[int, str]) -> Optional[Preset]:
    presets = content.presets.for_kind(kind)
    if isinstance(key, int):
        return presets[key] if 0 <= key < len(presets) else None
    return next((p for p in presets if p.name == key), None)


def apply_preset(content: ContentDocument, kind: PresetKind, key: Union[int, str]) -> ContentDocument:
    """Merge a saved preset into the hero style of its slot."""
    preset = find_preset(content, kind, key)
    if preset is None:
        logger.warning("Preset not found", kind=kind.value, key=key)
        return content
    updated = content.model_copy(deep=True)
    field = _STYLE_FIELDS[kind]
    setattr(updated.hero, field, getattr(updated.hero, field).merged(preset.style))
    return updated
