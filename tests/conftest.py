from typing import List

import pytest
import structlog

from news_feed.models.news import ArticleDto, SourceDto
from news_feed.models.result import Failure, Result
from news_feed.tools.cache import StoreArticleCache
from news_feed.tools.storage import JsonFileStore


# Loggers must not be cached so structlog.testing.capture_logs sees every event.
structlog.configure(cache_logger_on_first_use=False)


@pytest.fixture
def sample_dto() -> ArticleDto:
    return ArticleDto(
        title="Markets rally",
        description="Stocks close higher",
        image_url="https://example.com/image.jpg",
        published_at="2024-01-15T10:30:00Z",
        author="Jane Doe",
        url="https://example.com/markets",
        source=SourceDto(id="example", name="Example News"),
    )


@pytest.fixture
def cached_dto() -> ArticleDto:
    return ArticleDto(
        title="Yesterday's headline",
        url="https://example.com/old",
        published_at="2024-01-14T08:00:00Z",
        source=SourceDto(name="Archive"),
    )


@pytest.fixture
def file_cache(tmp_path) -> StoreArticleCache:
    return StoreArticleCache(JsonFileStore(tmp_path / "cache" / "articles.json"))


@pytest.fixture
def server_failure() -> Result[List[ArticleDto]]:
    return Result.fail(Failure.server("Network error"))
