"""
Pydantic Models and Schemas
===========================

Core data models for the persisted content document, the template catalog,
store records and API requests/responses. Field names are snake_case in Python
and camelCase on the wire, matching the JSON stored with each store record.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class BackgroundType(str, Enum):
    """Page background kinds."""
    COLOR = "color"
    IMAGE = "image"


class PresetKind(str, Enum):
    """Hero text slots a style preset can target."""
    TITLE = "title"
    SUBTITLE = "subtitle"
    BUTTON = "button"


class StoreStatus(str, Enum):
    """Publication status of a store."""
    DRAFT = "draft"
    PUBLISHED = "published"


class WireModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


# Styling
class StyleOverrides(WireModel):
    """A partial text style; only the fields that are set take effect."""
    font_family: Optional[str] = Field(None, alias="fontFamily")
    font_size: Optional[str] = Field(None, alias="fontSize")
    font_weight: Optional[str] = Field(None, alias="fontWeight")
    font_style: Optional[str] = Field(None, alias="fontStyle")
    color: Optional[str] = None
    text_decoration: Optional[str] = Field(None, alias="textDecoration")
    background_color: Optional[str] = Field(None, alias="backgroundColor")
    margin_top: Optional[str] = Field(None, alias="marginTop")
    margin_bottom: Optional[str] = Field(None, alias="marginBottom")
    padding: Optional[str] = None
    center: Optional[bool] = None

    @field_validator("font_size", "font_weight", "margin_top", "margin_bottom", "padding", mode="before")
    @classmethod
    def stringify_numbers(cls, v: Any) -> Any:
        """Numeric CSS values from older documents are stored as strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TextStyle(StyleOverrides):
    """A complete text style for one hero slot."""
    font_family: str = Field("Arial", alias="fontFamily")
    font_size: str = Field("1rem", alias="fontSize")
    font_weight: str = Field("normal", alias="fontWeight")
    font_style: str = Field("normal", alias="fontStyle")
    color: str = "#ffffff"

    def merged(self, overrides: StyleOverrides) -> "TextStyle":
        """Return a copy with every field the overrides set applied on top."""
        update = overrides.model_dump(exclude_none=True)
        return self.model_copy(update=update)


def default_title_style() -> TextStyle:
    return TextStyle(font_family="Arial", font_size="3rem", font_weight="bold", color="#ffffff")


def default_subtitle_style() -> TextStyle:
    return TextStyle(font_family="Arial", font_size="1.2rem", font_weight="normal", color="#e0e0e0")


def default_button_style() -> TextStyle:
    return TextStyle(
        font_family="Arial",
        font_size="1rem",
        font_weight="600",
        color="#000000",
        background_color="#c9a961",
    )


# Content document
class HeroContent(WireModel):
    """Hero section text and typography."""
    title: str = ""
    subtitle: str = Field("", description="Rich text; wrapping paragraph tags are stripped")
    button_text: str = Field("Shop Now", alias="buttonText")
    title_style: TextStyle = Field(default_factory=default_title_style, alias="titleStyle")
    subtitle_style: TextStyle = Field(default_factory=default_subtitle_style, alias="subtitleStyle")
    button_style: TextStyle = Field(default_factory=default_button_style, alias="buttonStyle")

    def style_for(self, kind: PresetKind) -> TextStyle:
        return {
            PresetKind.TITLE: self.title_style,
            PresetKind.SUBTITLE: self.subtitle_style,
            PresetKind.BUTTON: self.button_style,
        }[kind]


class BackgroundSettings(WireModel):
    """Page background applied to both root elements."""
    type: BackgroundType = BackgroundType.COLOR
    color: Optional[str] = Field(None, description="None means the template default colour")
    image: str = ""
    repeat: str = "no-repeat"
    size: str = "cover"
    position: str = "center"


class ElementState(WireModel):
    """Recorded deviation of one identified node from the template default."""
    deleted: bool = False
    hidden: bool = False
    offset_left: float = Field(0.0, alias="offsetLeft")
    offset_top: float = Field(0.0, alias="offsetTop")

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_display(cls, data: Any) -> Any:
        """Older documents stored visibility as a CSS display value."""
        if isinstance(data, dict) and "hidden" not in data and data.get("display") == "none":
            data = dict(data)
            data["hidden"] = not bool(data.get("deleted"))
        return data

    @field_validator("offset_left", "offset_top", mode="before")
    @classmethod
    def coerce_offset(cls, v: Any) -> Any:
        if v is None or v == "":
            return 0.0
        if isinstance(v, str):
            return float(v.strip().removesuffix("px") or 0)
        return v

    def is_default(self) -> bool:
        return not self.deleted and not self.hidden and self.offset_left == 0 and self.offset_top == 0

    @property
    def visible(self) -> bool:
        return not (self.deleted or self.hidden)


class Preset(WireModel):
    """A named, reusable text style."""
    name: str
    style: StyleOverrides = Field(default_factory=StyleOverrides)


class PresetLibrary(WireModel):
    """Saved presets grouped by the hero slot they target."""
    title: List[Preset] = Field(default_factory=list)
    subtitle: List[Preset] = Field(default_factory=list)
    button: List[Preset] = Field(default_factory=list)

    def for_kind(self, kind: PresetKind) -> List[Preset]:
        return getattr(self, kind.value)


class ContentDocument(WireModel):
    """All customizations applied to one store's page."""
    version: int = Field(1, ge=1)
    hero: HeroContent = Field(default_factory=HeroContent)
    background: Optional[BackgroundSettings] = None
    element_states: Dict[str, ElementState] = Field(default_factory=dict, alias="elementStates")
    presets: PresetLibrary = Field(default_factory=PresetLibrary)

    def sparse_states(self) -> Dict[str, ElementState]:
        """Element states that differ from the template default."""
        return {k: v for k, v in self.element_states.items() if not v.is_default()}

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, mode="json")
        data["elementStates"] = {
            k: v.model_dump(by_alias=True) for k, v in self.sparse_states().items()
        }
        return data


# Template catalog
class TemplateDocument(WireModel):
    """A fixed page template loaded from the catalog."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    template_key: str = Field(..., alias="templateKey")
    label: str = ""
    file_name: str = Field(..., alias="fileName")
    brand_text: str = Field(..., alias="brandText", description="Built-in placeholder brand")
    default_background: str = Field("#ffffff", alias="defaultBackground")
    raw_markup: str = Field(..., alias="rawMarkup", repr=False)


class TemplateSummary(WireModel):
    """Catalog entry without markup, for listings."""
    template_key: str = Field(..., alias="templateKey")
    label: str
    file_name: str = Field(..., alias="fileName")
    brand_text: str = Field(..., alias="brandText")
    default_background: str = Field(..., alias="defaultBackground")


# Store records
class Product(WireModel):
    """A catalog product owned by the external product store."""
    id: str
    name: str = ""
    description: str = ""
    price: float = 0.0
    image: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Any:
        if v is None or v == "":
            return 0.0
        return v


class StoreRecord(WireModel):
    """The slice of a store record the renderers read."""
    id: str
    store_name: str = Field("", alias="storeName")
    domain_name: str = Field(..., alias="domainName")
    description: str = ""
    template_id: str = Field("bladesmith", alias="templateId")
    status: StoreStatus = StoreStatus.DRAFT
    contact_email: Optional[str] = Field(None, alias="contactEmail")
    phone: Optional[str] = None
    barangay: Optional[str] = None
    municipality: Optional[str] = None
    province: Optional[str] = None
    region: Optional[str] = None
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @property
    def address(self) -> str:
        parts = [self.barangay, self.municipality, self.province, self.region]
        return ", ".join(p.strip() for p in parts if p and p.strip())

    @property
    def is_published(self) -> bool:
        return self.status == StoreStatus.PUBLISHED


# Editor models
class LayerInfo(WireModel):
    """One entry of the editor layer list."""
    id: str
    text: str
    hidden: bool = False
    locked: bool = False
    tag: str


class ContentParseResult(BaseModel):
    """Result of parsing a persisted content document."""
    success: bool
    document: ContentDocument = Field(default_factory=ContentDocument)
    warnings: List[str] = Field(default_factory=list)
    processing_time: float = 0.0


# API Models
class SaveContentRequest(WireModel):
    """Request body for saving a store's content document."""
    content: ContentDocument


class SaveResult(WireModel):
    """Outcome of an explicit save."""
    success: bool
    message: str
    store_id: str = Field(..., alias="storeId")
    saved_at: Optional[datetime] = Field(None, alias="savedAt")


class ContentResponse(WireModel):
    """A store's content document with load warnings."""
    store_id: str = Field(..., alias="storeId")
    template_key: str = Field(..., alias="templateKey")
    content: ContentDocument
    warnings: List[str] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Overall health status")
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)
    templates: int = Field(0, description="Number of loadable templates")
    components: Dict[str, bool] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
