"""
Content Document Parser
=======================

Turns persisted content JSON into a ContentDocument. Parsing never fails as a
whole: each field is validated on its own with Cerberus schemas, invalid values
are dropped back to their defaults and reported as warnings, and every section
is then built with pydantic, again falling back to its default on error.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import json
import time

from cerberus import Validator  # type: ignore[import-untyped]
from pydantic import ValidationError

from storefront.config.logging import get_logger
from storefront.core.errors import ContentParseError
from storefront.models.schemas import (
    BackgroundSettings,
    ContentDocument,
    ContentParseResult,
    ElementState,
    HeroContent,
    Preset,
    PresetKind,
    PresetLibrary,
    StyleOverrides,
)

logger = get_logger(__name__)

RawContent = Union[str, bytes, Dict[str, Any], None]


class ContentSchemas:
    """Cerberus schemas for each section of a content document."""

    def __init__(self) -> None:
        css_value = {"type": ["string", "number"], "nullable": True}

        self.style_schema: Dict[str, Any] = {
            "fontFamily": {"type": "string", "nullable": True},
            "fontSize": css_value,
            "fontWeight": css_value,
            "fontStyle": {"type": "string", "nullable": True},
            "color": {"type": "string", "nullable": True},
            "textDecoration": {"type": "string", "nullable": True},
            "backgroundColor": {"type": "string", "nullable": True},
            "marginTop": css_value,
            "marginBottom": css_value,
            "padding": css_value,
            "center": {"type": "boolean", "nullable": True},
        }

        self.hero_schema: Dict[str, Any] = {
            "title": {"type": "string", "nullable": True},
            "subtitle": {"type": "string", "nullable": True},
            "buttonText": {"type": "string", "nullable": True},
            "titleStyle": {"type": "dict", "schema": self.style_schema},
            "subtitleStyle": {"type": "dict", "schema": self.style_schema},
            "buttonStyle": {"type": "dict", "schema": self.style_schema},
        }

        self.background_schema: Dict[str, Any] = {
            "type": {"type": "string", "allowed": ["color", "image"]},
            "color": {"type": "string", "nullable": True},
            "image": {"type": "string", "nullable": True},
            "repeat": {"type": "string"},
            "size": {"type": "string"},
            "position": {"type": "string"},
        }

        self.element_state_schema: Dict[str, Any] = {
            "deleted": {"type": "boolean"},
            "hidden": {"type": "boolean"},
            "offsetLeft": {"type": ["number", "string"], "nullable": True},
            "offsetTop": {"type": ["number", "string"], "nullable": True},
            "display": {"type": "string", "nullable": True},
        }

        self.preset_schema: Dict[str, Any] = {
            "name": {"type": "string", "nullable": True},
            "style": {"type": "dict", "schema": self.style_schema},
        }


class ContentDocumentParser:
    """Per-field recovering parser for persisted content documents."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="content_parser")
        self.schemas = ContentSchemas()

    def parse(self, raw: RawContent) -> ContentParseResult:
        """
        Parse persisted content.

        Args:
            raw: JSON text, an already decoded mapping, or None for a new store

        Returns:
            ContentParseResult whose document is always usable
        """
        start_time = time.time()
        warnings: List[str] = []

        try:
            data = self._decode(raw)
        except ContentParseError as e:
            self.logger.warning("Content document unreadable, using defaults", error=str(e))
            return ContentParseResult(
                success=False,
                document=ContentDocument(),
                warnings=[str(e)],
                processing_time=time.time() - start_time,
            )

        sections: List[Tuple[str, Callable[[Any, List[str]], Any]]] = [
            ("version", self._parse_version),
            ("hero", self._parse_hero),
            ("background", self._parse_background),
            ("elementStates", self._parse_element_states),
            ("presets", self._parse_presets),
        ]

        fields: Dict[str, Any] = {}
        for key, section_parser in sections:
            if key not in data or data[key] is None:
                continue
            try:
                fields[key] = section_parser(data[key], warnings)
            except ContentParseError as e:
                warnings.append(str(e))

        document = ContentDocument.model_validate(fields)
        if warnings:
            self.logger.info("Content document recovered with warnings", warnings=len(warnings))

        return ContentParseResult(
            success=not warnings,
            document=document,
            warnings=warnings,
            processing_time=time.time() - start_time,
        )

    def _decode(self, raw: RawContent) -> Dict[str, Any]:
        if raw is None:
            return {}
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if isinstance(raw, str):
            if not raw.strip():
                return {}
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ContentParseError(
                    "content", f"invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}"
                ) from e
        if not isinstance(raw, dict):
            raise ContentParseError("content", f"expected an object, got {type(raw).__name__}")
        return raw

    def _clean(
        self, data: Any, schema: Dict[str, Any], path: str, warnings: List[str]
    ) -> Dict[str, Any]:
        """Validate each field on its own and drop the ones that fail."""
        if not isinstance(data, dict):
            raise ContentParseError(path, f"expected an object, got {type(data).__name__}")

        cleaned: Dict[str, Any] = {}
        for key, value in data.items():
            rule = schema.get(key)
            if rule is None:
                continue
            if rule.get("type") == "dict" and "schema" in rule and isinstance(value, dict):
                cleaned[key] = self._clean(value, rule["schema"], f"{path}.{key}", warnings)
                continue
            validator = Validator({key: rule})  # type: ignore[misc]
            if validator.validate({key: value}):  # type: ignore[misc]
                cleaned[key] = value
            else:
                warnings.extend(self._format_validation_errors(validator.errors, path))  # type: ignore[attr-defined]
        return cleaned

    def _format_validation_errors(self, errors: Any, path: str = "") -> List[str]:
        """Format Cerberus validation errors into readable messages."""
        formatted: List[str] = []
        for field, error_info in errors.items():
            current_path = f"{path}.{field}" if path else field
            for error in error_info if isinstance(error_info, list) else [error_info]:
                if isinstance(error, dict):
                    formatted.extend(self._format_validation_errors(error, current_path))
                else:
                    formatted.append(f"{current_path}: {error}")
        return formatted

    def _build(self, model: Any, fields: Dict[str, Any], path: str) -> Any:
        try:
            return model.model_validate(fields)
        except ValidationError as e:
            raise ContentParseError(path, e.errors()[0]["msg"]) from e

    def _parse_version(self, value: Any, warnings: List[str]) -> int:
        try:
            version = int(value)
        except (TypeError, ValueError):
            raise ContentParseError("version", f"not an integer: {value!r}")
        if version < 1:
            raise ContentParseError("version", f"must be at least 1, got {version}")
        return version

    def _parse_hero(self, value: Any, warnings: List[str]) -> HeroContent:
        fields = self._clean(value, self.schemas.hero_schema, "hero", warnings)
        # A null text field means "not customized"
        fields = {k: v for k, v in fields.items() if v is not None}
        for key in ("titleStyle", "subtitleStyle", "buttonStyle"):
            if key in fields:
                fields[key] = self._merge_style(key, fields[key], warnings)
        try:
            return self._build(HeroContent, fields, "hero")
        except ContentParseError as e:
            warnings.append(str(e))
            return HeroContent()

    def _merge_style(self, key: str, style: Dict[str, Any], warnings: List[str]) -> Dict[str, Any]:
        """Fill a stored style's missing fields from the slot default."""
        default = HeroContent().model_dump(by_alias=True)[key]
        merged = dict(default)
        merged.update({k: v for k, v in style.items() if v is not None})
        return merged

    def _parse_background(self, value: Any, warnings: List[str]) -> Optional[BackgroundSettings]:
        if isinstance(value, str):
            # Older documents stored a bare colour
            return BackgroundSettings(color=value) if value.strip() else None
        fields = self._clean(value, self.schemas.background_schema, "background", warnings)
        fields = {k: v for k, v in fields.items() if v is not None}
        return self._build(BackgroundSettings, fields, "background")

    def _parse_element_states(self, value: Any, warnings: List[str]) -> Dict[str, ElementState]:
        if not isinstance(value, dict):
            raise ContentParseError("elementStates", f"expected an object, got {type(value).__name__}")

        states: Dict[str, ElementState] = {}
        for element_id, raw_state in value.items():
            path = f"elementStates.{element_id}"
            try:
                fields = self._clean(raw_state, self.schemas.element_state_schema, path, warnings)
                state = self._build(ElementState, fields, path)
            except ContentParseError as e:
                warnings.append(str(e))
                continue
            if not state.is_default():
                states[str(element_id)] = state
        return states

    def _parse_presets(self, value: Any, warnings: List[str]) -> PresetLibrary:
        if not isinstance(value, dict):
            raise ContentParseError("presets", f"expected an object, got {type(value).__name__}")

        library: Dict[str, List[Preset]] = {}
        for kind in PresetKind:
            entries = value.get(kind.value) or []
            if not isinstance(entries, list):
                warnings.append(f"presets.{kind.value}: expected a list")
                continue
            presets: List[Preset] = []
            for index, entry in enumerate(entries):
                path = f"presets.{kind.value}[{index}]"
                try:
                    fields = self._clean(entry, self.schemas.preset_schema, path, warnings)
                    style = self._build(StyleOverrides, fields.get("style", {}), f"{path}.style")
                except ContentParseError as e:
                    warnings.append(str(e))
                    continue
                name = fields.get("name") or default_preset_name(kind, len(presets))
                presets.append(Preset(name=name, style=style))
            library[kind.value] = presets
        return PresetLibrary.model_validate(library)


def default_preset_name(kind: PresetKind, existing: int) -> str:
    return f"{kind.value} preset {existing + 1}"


def serialize_content(document: ContentDocument) -> str:
    """Serialize a content document with a sparse element state map."""
    return json.dumps(document.to_wire(), ensure_ascii=False)


_parser: Optional[ContentDocumentParser] = None


def get_content_parser() -> ContentDocumentParser:
    global _parser
    if _parser is None:
        _parser = ContentDocumentParser()
    return _parser


def parse_content(raw: RawContent) -> ContentParseResult:
    """Parse persisted content with the shared parser."""
    return get_content_parser().parse(raw)
