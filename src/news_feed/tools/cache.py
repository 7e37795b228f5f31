import json
import time
from typing import Callable, List, Protocol

from pydantic import TypeAdapter, ValidationError

from ..logging_config import get_logger
from ..models.news import ArticleDto
from ..models.result import Failure, Result
from .storage import KeyValueStore


logger = get_logger("tools.cache")

CACHED_ARTICLES_KEY = "CACHED_ARTICLES"
CACHED_TIMESTAMP_KEY = "CACHED_TIMESTAMP"

_ARTICLES_ADAPTER = TypeAdapter(List[ArticleDto])


class ArticleLocalCache(Protocol):
    def get_last_articles(self) -> Result[List[ArticleDto]]:
        ...

    def cache_articles(self, articles: List[ArticleDto]) -> None:
        ...

    def get_cached_timestamp(self) -> int | None:
        ...


class StoreArticleCache:
    """Persist the last fetched article list in a key/value store.

    The article list is stored as a JSON string under ``CACHED_ARTICLES`` and
    the write time (ms since the epoch) under ``CACHED_TIMESTAMP``. Every
    write replaces both keys together.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    def get_last_articles(self) -> Result[List[ArticleDto]]:
        payload = self._store.get(CACHED_ARTICLES_KEY)
        if not payload:
            return Result.fail(Failure.cache_empty())

        try:
            articles = _ARTICLES_ADAPTER.validate_json(payload)
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("cache_parse_failed", error=str(exc))
            return Result.fail(Failure.cache_empty())
        return Result.success(articles)

    def cache_articles(self, articles: List[ArticleDto]) -> None:
        # Serialize before touching the store so a bad payload leaves the
        # previous snapshot in place.
        payload = json.dumps(
            [a.model_dump(mode="json", by_alias=True) for a in articles],
            ensure_ascii=False,
        )
        timestamp = int(self._clock() * 1000)
        self._store.put_many(
            {CACHED_ARTICLES_KEY: payload, CACHED_TIMESTAMP_KEY: timestamp}
        )
        logger.info("cache_articles_written", count=len(articles), timestamp=timestamp)

    def get_cached_timestamp(self) -> int | None:
        value = self._store.get(CACHED_TIMESTAMP_KEY)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
