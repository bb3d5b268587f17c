from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from postfeed.config import Settings


class DocumentData(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Fields stay raw so a malformed value only fails its own document.
    title: Any = None
    content: Any = Field(default_factory=list)
    image: Any = None
    tags: Any = None


class RawDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    uid: str | None = None
    type: str | None = None
    last_publication_date: Any = None
    data: DocumentData = Field(default_factory=DocumentData)


class Post(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    excerpt: str = ""
    tag: str = ""
    image: str = ""
    time_of_read: int = Field(ge=0)
    updated_at: str


class QueryRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(ge=1)
    page_size: int = Field(gt=0)
    fetch_fields: tuple[str, ...]
    predicate: str
    orderings: str


class QueryResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    page: int = 1
    results: list[RawDocument] = Field(default_factory=list)
    results_size: int = Field(default=0, ge=0)
    total_results_size: int | None = None
    total_pages: int | None = None
    next_page: str | None = None


class FeedQueryConfig(BaseModel):
    """Fixed query parameters shared by the initial load, pagination and search."""

    model_config = ConfigDict(frozen=True)

    document_type: str = "template-post"
    page_size: int = Field(default=4, gt=0)
    orderings: str = "[document.last_publication_date desc]"
    display_timezone: str = "America/Sao_Paulo"

    @classmethod
    def from_settings(cls, settings: "Settings") -> "FeedQueryConfig":
        return cls(
            document_type=settings.prismic_document_type,
            page_size=settings.page_size,
            display_timezone=settings.display_timezone,
        )

    @property
    def fetch_fields(self) -> tuple[str, ...]:
        return tuple(
            f"{self.document_type}.{field}" for field in ("title", "content", "image", "tags")
        )

    @property
    def base_predicate(self) -> str:
        return f'[at(document.type,"{self.document_type}")]'

    def build_predicate(self, term: str = "") -> str:
        if not term:
            return self.base_predicate
        escaped = term.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.base_predicate}[fulltext(document,"{escaped}")]'

    def build_request(self, page: int, term: str = "") -> QueryRequest:
        return QueryRequest(
            page=page,
            page_size=self.page_size,
            fetch_fields=self.fetch_fields,
            predicate=self.build_predicate(term),
            orderings=self.orderings,
        )
