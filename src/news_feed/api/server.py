from contextlib import asynccontextmanager
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..core.date_format import format_relative_date
from ..core.network import NetworkProbe, StaticNetworkProbe, SystemNetworkProbe
from ..core.repository import ArticleRepository
from ..logging_config import get_logger
from ..models.news import Article, format_published_at
from ..models.result import Failure, FailureKind
from ..tools.cache import StoreArticleCache
from ..tools.news_api import NewsApiRemoteSource
from ..tools.storage import JsonFileStore


logger = get_logger("api.server")


# ============================================================================
# Response Models
# ============================================================================


class ArticleResponse(BaseModel):
    title: str
    description: str
    image_url: str
    published_at: str
    published_relative: str
    author: str
    url: str
    source_name: str
    has_image: bool
    has_valid_url: bool

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(
            title=article.title,
            description=article.description,
            image_url=article.image_url,
            published_at=format_published_at(article.published_at),
            published_relative=format_relative_date(article.published_at),
            author=article.author,
            url=article.url,
            source_name=article.source_name,
            has_image=article.has_image,
            has_valid_url=article.has_valid_url,
        )


class ArticlesPayload(BaseModel):
    articles: List[ArticleResponse]
    count: int
    cached_at: Optional[int] = None


_FAILURE_STATUS = {
    FailureKind.API_KEY_NOT_CONFIGURED: 503,
    FailureKind.CACHE_EMPTY: 503,
    FailureKind.SERVER: 502,
}


def failure_to_http(failure: Failure) -> HTTPException:
    return HTTPException(
        status_code=_FAILURE_STATUS[failure.kind],
        detail={
            "kind": failure.kind.value,
            "message": failure.user_message,
            "retryable": failure.retryable,
        },
    )


# ============================================================================
# Dependencies
# ============================================================================


@lru_cache(maxsize=1)
def _network_probe() -> SystemNetworkProbe:
    return SystemNetworkProbe(settings.connectivity_check_host, settings.connectivity_check_port)


@lru_cache(maxsize=1)
def _remote_source() -> NewsApiRemoteSource:
    return NewsApiRemoteSource(settings)


@lru_cache(maxsize=1)
def _article_cache() -> StoreArticleCache:
    return StoreArticleCache(JsonFileStore(settings.cache_path))


def get_repository() -> ArticleRepository:
    """Build a repository over the shared collaborators.

    Connectivity is re-validated once per request, outside the repository.
    """
    probe: NetworkProbe
    if settings.offline:
        probe = StaticNetworkProbe(False)
    else:
        probe = _network_probe()
        probe.validate()
    return ArticleRepository(remote=_remote_source(), cache=_article_cache(), network=probe)


def close_remote_source() -> None:
    if _remote_source.cache_info().currsize:
        _remote_source().close()
        _remote_source.cache_clear()
        logger.info("remote_source_closed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_remote_source()


app = FastAPI(
    title="News Feed API",
    description="Top headlines with an offline cache fallback",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# Endpoints
# ============================================================================


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/articles", response_model=ArticlesPayload)
def list_articles(repository: ArticleRepository = Depends(get_repository)) -> ArticlesPayload:
    logger.info("articles_request")
    result = repository.get_articles()

    if result.is_failure:
        logger.warning(
            "articles_request_failed",
            kind=result.failure.kind.value,
            retryable=result.failure.retryable,
        )
        raise failure_to_http(result.failure)

    articles = [ArticleResponse.from_article(a) for a in result.value]
    logger.info("articles_response", count=len(articles))
    return ArticlesPayload(
        articles=articles,
        count=len(articles),
        cached_at=repository.cached_timestamp(),
    )
