"""
Content Schemas

Pydantic models for the content collections read from static JSON.
Each model corresponds to one collection:
- Casino  -> "casinos"
- Country -> "countries"
- Guide   -> "guides"

Content is authored by hand, so the models never trust a raw value's type.
Every field is declared with one of the coercing field types below:
- required text (slug, code, name, title) rejects the whole record
- optional scalars come back as None when missing or of the wrong type
- list fields turn anything that is not an array into an empty list and
  drop elements that are not strings (no str() coercion)
- composite lists (faq, screenshots) drop elements that fail their own shape

Records dump back to the camelCase JSON keys with ``to_json()``.
"""

import math
from typing import Annotated, Any, Callable, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)


# --------------------------------------------------
# Field coercion

# numbers keep the type they were written with (4 stays 4, 4.5 stays 4.5)
Number = Union[int, float]

def _required_text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


def _slug(value: Any) -> str:
    return _required_text(value).lower()


def _code(value: Any) -> str:
    return _required_text(value).upper()


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _identifier(value: Any) -> Optional[str]:
    # bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return _optional_text(value)


def _bounded(low: float, high: Optional[float] = None) -> Callable[[Any], Optional[Number]]:
    def coerce(value: Any) -> Optional[Number]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        try:
            finite = math.isfinite(value)
        except OverflowError:
            # JSON integers have no size limit; past float range they are not usable
            return None
        if not finite or value < low:
            return None
        if high is not None and value > high:
            return None
        return value
    return coerce


def _string_list(transform: Optional[Callable[[str], str]] = None, unique: bool = False):
    def coerce(value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        out: List[str] = []
        for item in value:
            if not isinstance(item, str):
                continue
            text = item.strip()
            if transform is not None:
                text = transform(text)
            if not text or (unique and text in out):
                continue
            out.append(text)
        return out
    return coerce


def _valid_items(model):
    def coerce(value: Any) -> list:
        if not isinstance(value, list):
            return []
        items = []
        for item in value:
            try:
                items.append(model.model_validate(item))
            except ValidationError:
                continue
        return items
    return coerce


def _optional_model(model):
    def coerce(value: Any):
        if not isinstance(value, (dict, model)):
            return None
        try:
            return model.model_validate(value)
        except ValidationError:
            return None
    return coerce


def _opaque(value: Any) -> Any:
    # nested content blocks are checked by whoever renders them
    if isinstance(value, (dict, list)):
        return value
    return None


Slug = Annotated[str, BeforeValidator(_slug)]
CountryCode = Annotated[str, BeforeValidator(_code)]
Text = Annotated[str, BeforeValidator(_required_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]
Identifier = Annotated[Optional[str], BeforeValidator(_identifier)]
Rating = Annotated[Optional[Number], BeforeValidator(_bounded(0, 5))]
Amount = Annotated[Optional[Number], BeforeValidator(_bounded(0))]
StringList = Annotated[List[str], BeforeValidator(_string_list())]
SlugList = Annotated[List[str], BeforeValidator(_string_list(str.lower, unique=True))]
CodeList = Annotated[List[str], BeforeValidator(_string_list(str.upper, unique=True))]
Opaque = Annotated[Optional[Any], BeforeValidator(_opaque)]


class ContentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        """Dump with the JSON key names, leaving out absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --------------------------------------------------
# Shared shapes

class FaqItem(ContentModel):
    """Question/answer pair; accepts the short ``{q, a}`` form too."""
    question: Text = Field(..., validation_alias=AliasChoices("question", "q"))
    answer: Text = Field(..., validation_alias=AliasChoices("answer", "a"))


FaqList = Annotated[List[FaqItem], BeforeValidator(_valid_items(FaqItem))]


class Screenshot(ContentModel):
    src: Text = Field(..., validation_alias=AliasChoices("src", "url"))
    alt: OptionalText = None

    @model_validator(mode="before")
    @classmethod
    def from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"src": data}
        return data


ScreenshotList = Annotated[List[Screenshot], BeforeValidator(_valid_items(Screenshot))]


class CasinoAssets(ContentModel):
    logo: OptionalText = None
    hero: OptionalText = Field(None, validation_alias=AliasChoices("hero", "heroImage"))
    og: OptionalText = Field(None, validation_alias=AliasChoices("og", "ogImage"))
    screenshots: ScreenshotList = Field(default_factory=list)


# --------------------------------------------------
# Collections

class Casino(ContentModel):
    """Casino review record"""
    id: Identifier = Field(None, description="Stable identifier, defaults to the slug")
    slug: Slug = Field(..., description="URL-friendly unique identifier, lowercase")
    name: Text
    rating: Rating = Field(None, description="Editorial rating (0-5)")
    min_deposit: Amount = Field(None, alias="minDeposit")
    countries: CodeList = Field(
        default_factory=list,
        validation_alias=AliasChoices("countries", "countryCodes"),
        description="ISO-2 codes where the casino accepts players",
    )
    description: OptionalText = None
    pros: StringList = Field(default_factory=list)
    cons: StringList = Field(default_factory=list)
    faq: FaqList = Field(default_factory=list)
    # Extended review content
    overview: Opaque = None
    payments: Opaque = None
    bonuses: Opaque = None
    mobile: Opaque = None
    safety: Opaque = None
    content: Opaque = None
    internal_links: Opaque = Field(None, alias="internalLinks")
    assets: Annotated[Optional[CasinoAssets], BeforeValidator(_optional_model(CasinoAssets))] = None

    @model_validator(mode="after")
    def default_id(self) -> "Casino":
        if not self.id:
            self.id = self.slug
        return self


class Country(ContentModel):
    """Country landing page record"""
    code: CountryCode = Field(
        ...,
        validation_alias=AliasChoices("code", "iso2", "countryCode"),
        description="ISO-2 code, uppercase",
    )
    name: Text = Field(..., validation_alias=AliasChoices("name", "title"))
    description: OptionalText = None


class Guide(ContentModel):
    """Editorial guide record"""
    slug: Slug
    title: Text
    description: OptionalText = None
    content: OptionalText = Field(None, description="Markdown or HTML content")
    related_casinos: SlugList = Field(default_factory=list, alias="relatedCasinos")
    related_countries: CodeList = Field(default_factory=list, alias="relatedCountries")
    faq: FaqList = Field(default_factory=list)


# --------------------------------------------------
# Load reports

class Diagnostic(BaseModel):
    """One raw item that did not make it into a collection"""
    entity: str
    origin: str = Field(..., description="File name, array index or document id")
    kind: Literal["invalid", "unreadable", "duplicate"]
    reasons: List[str] = Field(default_factory=list)


class LinkReport(BaseModel):
    """References of one record that do not resolve"""
    entity: Literal["casino", "guide"]
    key: str
    missing_casinos: List[str] = Field(default_factory=list)
    missing_countries: List[str] = Field(default_factory=list)
