from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from page_migrator.utils.errors import MalformedInputError

# Repeatable ACF block holding the page's services and its two sub-fields.
SERVICES_FIELD = "services_repeater"
SERVICE_TITLE_KEY = "service_title"
SERVICE_ICON_KEY = "service_icon"

# ACF fields holding section images.  These are never sent with the page
# content; they are filled in by a second update once media is uploaded.
IMAGE_FIELDS: Tuple[str, ...] = (
    "image_text_section_1_image",
    "image_text_section_2_image",
    "image_text_section_3_image",
    "image_text_section_4_image",
    "about_us_image",
)


def _rendered(value: Any) -> Any:
    # WordPress wraps title/content as {"rendered": "..."}.
    if isinstance(value, dict):
        return value.get("rendered")
    return value


class IconResource(BaseModel):
    """An SVG media item on the destination site usable as a service icon."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    icon_name: str
    filename: str = ""
    url: str = ""


class StagedRecord(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    origin_id: str
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    status: str = "draft"
    content: str
    acf: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("origin_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any):
        if v is None or str(v).strip() == "":
            raise ValueError("page id is required")
        return str(v)

    @field_validator("acf", mode="before")
    @classmethod
    def _acf_mapping(cls, v: Any):
        # WordPress returns an empty list instead of an object when a page
        # has no ACF values.
        if not v:
            return {}
        return v

    @classmethod
    def from_wordpress(cls, data: Dict[str, Any]) -> "StagedRecord":
        """Build a record from a WordPress REST page object.

        :raises MalformedInputError: if id, title, slug or content is missing.
        """
        if not isinstance(data, dict):
            raise MalformedInputError("page data must be a JSON object")
        try:
            return cls(
                origin_id=data.get("id"),
                title=_rendered(data.get("title")),
                slug=data.get("slug"),
                status=data.get("status") or "draft",
                content=_rendered(data.get("content")),
                acf=data.get("acf"),
            )
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise MalformedInputError(
                f"page {data.get('id')!r} is malformed: invalid or missing {', '.join(fields)}"
            ) from e

    @property
    def services(self) -> Optional[List[Dict[str, Any]]]:
        services = self.acf.get(SERVICES_FIELD)
        return services if isinstance(services, list) else None

    def describe(self) -> Dict[str, Any]:
        """Small dictionary used for report entries."""
        return {"originId": self.origin_id, "slug": self.slug, "title": self.title}


class LedgerRecord(BaseModel):
    """Mapping from one source page to the page created on the destination.

    On disk the media ids are flattened into the record as
    ``<image field>: <media id>`` pairs.
    """

    model_config = ConfigDict(populate_by_name=True)

    origin_id: str = Field(..., alias="originId")
    page_id: str = Field(..., alias="pageId")
    title: str = ""
    url: Optional[str] = None
    media_ids: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("origin_id", "page_id", mode="before")
    @classmethod
    def _stringify(cls, v: Any):
        return str(v) if v is not None else v

    @property
    def has_media(self) -> bool:
        return any(self.media_ids.values())

    @classmethod
    def from_json(cls, data: Dict[str, Any], image_fields: Iterable[str] = IMAGE_FIELDS) -> "LedgerRecord":
        """Read a ledger entry; ``image_fields`` names the flattened media keys."""
        media = {field: data[field] for field in image_fields if data.get(field)}
        return cls(
            originId=data.get("originId"),
            pageId=data.get("pageId"),
            title=data.get("title") or "",
            url=data.get("url"),
            media_ids=media,
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "originId": self.origin_id,
            "pageId": self.page_id,
            "title": self.title,
            "url": self.url,
        }
        out.update(self.media_ids)
        return out


class MigrationOutcome(BaseModel):
    success: bool
    source: str
    origin_id: Optional[str] = None
    title: Optional[str] = None
    record: Optional[LedgerRecord] = None
    error: Optional[str] = None


class RunReport(BaseModel):
    outcomes: List[MigrationOutcome] = Field(default_factory=list)

    def add(self, outcome: MigrationOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def successes(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failures(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def failed(self) -> List[MigrationOutcome]:
        return [o for o in self.outcomes if not o.success]
