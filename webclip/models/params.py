"""
Clipping Parameters
===================

The optional-field parameter model that controls extraction and rendering.

Every field is ``Optional``: ``None`` means "unset, let the renderer use its
default". Decoding, preset merging and validation never turn an unset field
into a false or zero value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from webclip.core.errors import ValidationFailed

UInt = Annotated[int, Field(ge=0)]

ORIENTATION_LANDSCAPE = "Landscape"
ORIENTATION_PORTRAIT = "Portrait"
ORIENTATIONS = (ORIENTATION_LANDSCAPE, ORIENTATION_PORTRAIT)

PAGE_SIZE_CUSTOM = "Custom"

# Page sizes in millimetres (width, height), portrait.
PAGE_SIZES: Dict[str, Optional[Tuple[int, int]]] = {
    "A0": (841, 1189),
    "A1": (594, 841),
    "A2": (420, 594),
    "A3": (297, 420),
    "A4": (210, 297),
    "A5": (148, 210),
    "A6": (105, 148),
    "A7": (74, 105),
    "A8": (52, 74),
    "A9": (37, 52),
    "B0": (1000, 1414),
    "B1": (707, 1000),
    "B2": (500, 707),
    "B3": (353, 500),
    "B4": (250, 353),
    "B5": (176, 250),
    "B6": (125, 176),
    "B7": (88, 125),
    "B8": (62, 88),
    "B9": (44, 62),
    "B10": (31, 44),
    "C5E": (163, 229),
    "Comm10E": (105, 241),
    PAGE_SIZE_CUSTOM: None,
    "DLE": (110, 220),
    "Executive": (191, 254),
    "Folio": (210, 330),
    "Ledger": (432, 279),
    "Legal": (216, 356),
    "Letter": (216, 279),
    "Tabloid": (279, 432),
}


class FieldKind(str, Enum):
    """Scalar kind of a parameter field, as named in decode errors."""

    UINT = "unsigned integer"
    STRING = "string"
    BOOL = "bool (true or false)"
    FLOAT = "number"


@dataclass(frozen=True)
class ParamField:
    """One entry of the parameter field table."""

    name: str
    kind: FieldKind


class ClipParams(BaseModel):
    """Extraction and rendering options for a single clip."""

    model_config = ConfigDict(strict=True, extra="ignore")

    # Extraction
    query: Optional[str] = Field(None, description="CSS selector of content to keep")
    remove: Optional[str] = Field(None, description="CSS selector of elements to remove")
    no_break_before: Optional[str] = Field(None, description="Avoid page breaks before matches")
    no_break_inside: Optional[str] = Field(None, description="Avoid page breaks inside matches")
    no_break_after: Optional[str] = Field(None, description="Avoid page breaks after matches")
    custom_styles: Optional[str] = Field(None, description="CSS injected into the document")
    with_containers: Optional[bool] = Field(None, description="Keep ancestors of query result")
    force_image_loading: Optional[bool] = Field(None, description="Copy img data-src into src")

    # Document options
    grayscale: Optional[bool] = None
    margin_bottom: Optional[UInt] = Field(None, description="Bottom margin in millimetres")
    margin_left: Optional[UInt] = Field(None, description="Left margin in millimetres")
    margin_right: Optional[UInt] = Field(None, description="Right margin in millimetres")
    margin_top: Optional[UInt] = Field(None, description="Top margin in millimetres")
    orientation: Optional[str] = None
    page_height: Optional[UInt] = Field(None, description="Page height in millimetres")
    page_width: Optional[UInt] = Field(None, description="Page width in millimetres")
    page_size: Optional[str] = None
    title: Optional[str] = None

    # Page options
    disable_external_links: Optional[bool] = None
    disable_internal_links: Optional[bool] = None
    enable_javascript: Optional[bool] = None
    no_background: Optional[bool] = None
    no_images: Optional[bool] = None
    page_offset: Optional[UInt] = None
    zoom: Optional[float] = None
    viewport_size: Optional[str] = Field(None, description="Viewport as WIDTHxHEIGHT")

    def add_from(self, other: "ClipParams") -> "ClipParams":
        """Fill fields unset here with the values set in ``other``.

        Fields already set are never overwritten, so when presets are applied
        one after another the first value supplied for a field wins.

        Args:
            other: Parameters to take missing values from

        Returns:
            self, to allow chaining
        """
        for field in PARAM_FIELDS:
            if getattr(self, field.name) is not None:
                continue
            value = getattr(other, field.name)
            if value is not None:
                setattr(self, field.name, value)
        return self

    def validate_values(self) -> None:
        """Check enumerated fields.

        Raises:
            ValidationFailed: On the first page size or orientation violation
        """
        if self.page_size is not None and self.page_size not in PAGE_SIZES:
            raise ValidationFailed(f"invalid page size: {self.page_size}")
        if self.orientation is not None and self.orientation not in ORIENTATIONS:
            raise ValidationFailed(f"bad value for orientation parameter: {self.orientation}")

    def skips_extraction(self) -> bool:
        """True when no DOM work is requested and the URL can go straight to the renderer."""
        return (
            self.query is None
            and self.remove is None
            and self.custom_styles is None
            and self.force_image_loading is None
        )

    def set_fields(self) -> Dict[str, Any]:
        """Return set fields in table order."""
        values: Dict[str, Any] = {}
        for field in PARAM_FIELDS:
            value = getattr(self, field.name)
            if value is not None:
                values[field.name] = value
        return values

    def describe(self) -> str:
        """Compact rendering of set fields for logs."""
        return "ClipParams{ " + "".join(f"{k}: {v}; " for k, v in self.set_fields().items()) + "}"


PARAM_FIELDS: Tuple[ParamField, ...] = (
    ParamField("query", FieldKind.STRING),
    ParamField("remove", FieldKind.STRING),
    ParamField("no_break_before", FieldKind.STRING),
    ParamField("no_break_inside", FieldKind.STRING),
    ParamField("no_break_after", FieldKind.STRING),
    ParamField("custom_styles", FieldKind.STRING),
    ParamField("with_containers", FieldKind.BOOL),
    ParamField("force_image_loading", FieldKind.BOOL),
    ParamField("grayscale", FieldKind.BOOL),
    ParamField("margin_bottom", FieldKind.UINT),
    ParamField("margin_left", FieldKind.UINT),
    ParamField("margin_right", FieldKind.UINT),
    ParamField("margin_top", FieldKind.UINT),
    ParamField("orientation", FieldKind.STRING),
    ParamField("page_height", FieldKind.UINT),
    ParamField("page_width", FieldKind.UINT),
    ParamField("page_size", FieldKind.STRING),
    ParamField("title", FieldKind.STRING),
    ParamField("disable_external_links", FieldKind.BOOL),
    ParamField("disable_internal_links", FieldKind.BOOL),
    ParamField("enable_javascript", FieldKind.BOOL),
    ParamField("no_background", FieldKind.BOOL),
    ParamField("no_images", FieldKind.BOOL),
    ParamField("page_offset", FieldKind.UINT),
    ParamField("zoom", FieldKind.FLOAT),
    ParamField("viewport_size", FieldKind.STRING),
)
