from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

API_KEY_ERROR_CODES = ("apiKeyInvalid", "apiKeyDisabled", "apiKeyExhausted")


def parse_published_at(value: str | None) -> datetime:
    """Parse an ISO 8601 timestamp, falling back to the Unix epoch."""

    if not value:
        return EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_published_at(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class Article(BaseModel):
    """A news article as the rest of the application sees it.

    Missing upstream values are normalized to empty strings (or the epoch for
    ``published_at``) so consumers never have to handle ``None``.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    image_url: str = ""
    published_at: datetime = EPOCH
    author: str = ""
    url: str = ""
    source_name: str = ""

    @property
    def has_image(self) -> bool:
        return self.image_url != ""

    @property
    def has_valid_url(self) -> bool:
        return self.url != ""


class SourceDto(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class ArticleDto(BaseModel):
    """Wire and cache representation of an article (NewsAPI field names)."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="urlToImage")
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
    author: Optional[str] = None
    url: Optional[str] = None
    source: Optional[SourceDto] = None

    def to_domain(self) -> Article:
        return Article(
            title=self.title or "",
            description=self.description or "",
            image_url=self.image_url or "",
            published_at=parse_published_at(self.published_at),
            author=self.author or "",
            url=self.url or "",
            source_name=(self.source.name if self.source else None) or "",
        )

    @classmethod
    def from_domain(cls, article: Article) -> "ArticleDto":
        return cls(
            title=article.title,
            description=article.description,
            image_url=article.image_url,
            published_at=format_published_at(article.published_at),
            author=article.author,
            url=article.url,
            source=SourceDto(name=article.source_name),
        )


class ArticlesResponse(BaseModel):
    """Envelope returned by the top-headlines endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    total_results: Optional[int] = Field(default=None, alias="totalResults")
    articles: Optional[List[ArticleDto]] = None
    code: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == "ok"

    @property
    def is_api_key_error(self) -> bool:
        return self.code in API_KEY_ERROR_CODES
