"""
Typed form of a fully-resolved render configuration.

Every model accepts camelCase keys (as sent by clients) as well as snake_case
field names. Dumping a nested model with ``exclude_none=True`` produces the
keyword arguments of the matching Playwright call, e.g.
``page.pdf(**options.pdf.model_dump(exclude_none=True))``.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def to_camel(key: str) -> str:
    """Converts ``snake_case`` to ``camelCase``; keys without underscores are returned unchanged."""
    if "_" not in key:
        return key
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class FailurePolicy(str, Enum):
    """Strictness applied to failed network exchanges observed during a render."""
    NONE = "none"
    ALL = "all"    # abort when any exchange failed
    PAGE = "page"  # abort when the main resource did not succeed

    @classmethod
    def parse(cls, value: Any) -> "FailurePolicy":
        """Resolves a raw request value; anything unrecognised means no strict aborting."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NONE
        return cls.NONE


class _OptionsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _dimension(value: Any) -> Any:
    # Playwright takes CSS lengths as strings; bare numbers are pixels.
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class ViewportOptions(_OptionsModel):
    width: int = 1600
    height: int = 1200
    device_scale_factor: Optional[float] = None
    is_mobile: Optional[bool] = None
    has_touch: Optional[bool] = None
    is_landscape: Optional[bool] = None


class GotoOptions(_OptionsModel):
    """Navigation wait policy shared by ``page.goto`` and ``page.set_content``."""
    wait_until: Optional[str] = "networkidle"
    timeout: Optional[float] = None

    @field_validator("wait_until", mode="before")
    @classmethod
    def legacy_wait_until(cls, value: Any) -> Any:
        if isinstance(value, str) and value.startswith("networkidle"):
            return "networkidle"
        return value


class PdfMargin(_OptionsModel):
    top: Optional[str] = None
    right: Optional[str] = None
    bottom: Optional[str] = None
    left: Optional[str] = None

    @field_validator("top", "right", "bottom", "left", mode="before")
    @classmethod
    def coerce_dimension(cls, value: Any) -> Any:
        return _dimension(value)


class PdfOptions(_OptionsModel):
    scale: Optional[float] = None
    display_header_footer: Optional[bool] = None
    header_template: Optional[str] = None
    footer_template: Optional[str] = None
    print_background: Optional[bool] = True
    landscape: Optional[bool] = None
    page_ranges: Optional[str] = None
    format: Optional[str] = "A4"
    width: Optional[str] = None
    height: Optional[str] = None
    margin: Optional[PdfMargin] = None
    prefer_css_page_size: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("preferCSSPageSize", "preferCssPageSize", "prefer_css_page_size"),
    )

    @field_validator("width", "height", mode="before")
    @classmethod
    def coerce_dimension(cls, value: Any) -> Any:
        return _dimension(value)


class ClipRegion(_OptionsModel):
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    def is_set(self) -> bool:
        """True when at least one of the four fields was supplied."""
        return any(v is not None for v in (self.x, self.y, self.width, self.height))


class ScreenshotOptions(_OptionsModel):
    type: Optional[str] = "png"
    quality: Optional[int] = None
    full_page: Optional[bool] = True
    omit_background: Optional[bool] = None
    clip: ClipRegion = Field(default_factory=ClipRegion)


class RenderOptions(_OptionsModel):
    """
    Complete configuration for one render request.

    ``output`` stays a raw string here; it is resolved (and rejected when
    unknown) by the artifact capturer.
    """
    url: Optional[str] = None
    html: Optional[str] = None
    attachment_name: Optional[str] = None
    cookies: List[Dict[str, Any]] = Field(default_factory=list)
    scroll_page: bool = False
    emulate_screen_media: bool = True
    ignore_https_errors: bool = False
    cache_enabled: bool = True
    viewport: ViewportOptions = Field(default_factory=ViewportOptions)
    goto: GotoOptions = Field(default_factory=GotoOptions)
    output: Any = "pdf"
    pdf: PdfOptions = Field(default_factory=PdfOptions)
    screenshot: ScreenshotOptions = Field(default_factory=ScreenshotOptions)
    fail_early: FailurePolicy = FailurePolicy.NONE
    wait_for: int = 6000

    @field_validator("fail_early", mode="before")
    @classmethod
    def parse_policy(cls, value: Any) -> FailurePolicy:
        return FailurePolicy.parse(value)

    @field_validator("wait_for", mode="before")
    @classmethod
    def parse_wait(cls, value: Any) -> int:
        return coerce_wait(value)

    @field_validator("output", mode="before")
    @classmethod
    def output_as_text(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @property
    def uses_inline_markup(self) -> bool:
        return self.html is not None


def coerce_wait(value: Any) -> int:
    """
    Coerces a wait duration to whole milliseconds.

    Numbers and numeric strings are truncated toward zero; anything else
    (including booleans) means no wait.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0
