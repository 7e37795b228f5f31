from typing import List

from ..config import Settings, settings as default_settings
from ..logging_config import get_logger
from ..models.news import Article, ArticleDto
from ..models.result import Failure, FailureKind, Result
from ..tools.cache import ArticleLocalCache, StoreArticleCache
from ..tools.news_api import ArticleRemoteSource, NewsApiRemoteSource
from ..tools.storage import JsonFileStore
from .network import NetworkProbe, StaticNetworkProbe, SystemNetworkProbe


logger = get_logger("core.repository")


def _to_domain(articles: List[ArticleDto]) -> List[Article]:
    return [a.to_domain() for a in articles]


class ArticleRepository:
    """Decide where articles come from for a single request.

    - Online: fetch remotely, write the result to the cache, return it.
    - Online with an error: serve the cached snapshot instead.
    - Offline: serve the cached snapshot.
    - A missing or rejected API key is returned as-is, without touching the
      cache.

    The repository keeps no state of its own between calls.
    """

    def __init__(
        self,
        remote: ArticleRemoteSource,
        cache: ArticleLocalCache,
        network: NetworkProbe,
    ) -> None:
        self._remote = remote
        self._cache = cache
        self._network = network

    def get_articles(self) -> Result[List[Article]]:
        if self._network.is_connected():
            return self._fetch_remote_with_fallback()
        logger.info("articles_offline")
        return self._fetch_from_cache()

    def _fetch_remote_with_fallback(self) -> Result[List[Article]]:
        result = self._remote.get_articles()

        if result.is_success:
            articles = result.value or []
            try:
                self._cache.cache_articles(articles)
            except (OSError, ValueError) as exc:
                # A success result implies the cache holds the same articles.
                logger.warning("articles_cache_write_failed", error=str(exc))
                return self._fetch_from_cache()
            logger.info("articles_remote_success", results=len(articles))
            return Result.success(_to_domain(articles))

        failure = result.failure
        if failure.kind is FailureKind.API_KEY_NOT_CONFIGURED:
            logger.warning("articles_remote_failed", kind=failure.kind.value)
            return result.map(_to_domain)

        logger.warning("articles_remote_failed", kind=failure.kind.value, detail=failure.detail)
        cached = self._fetch_from_cache()
        if cached.is_success:
            logger.info("articles_cache_fallback", results=len(cached.value))
        return cached

    def cached_timestamp(self) -> int | None:
        """Milliseconds since the epoch of the last successful cache write."""
        return self._cache.get_cached_timestamp()

    def close(self) -> None:
        self._remote.close()

    def _fetch_from_cache(self) -> Result[List[Article]]:
        cached = self._cache.get_last_articles()
        if cached.is_failure:
            logger.info("articles_cache_miss")
            return Result.fail(Failure.cache_empty())
        return cached.map(_to_domain)


def build_repository(
    config: Settings | None = None, network: NetworkProbe | None = None
) -> ArticleRepository:
    """Wire the NewsAPI source, the on-disk cache and a network probe.

    With ``config.offline`` set, the probe always reports no connection.
    """

    config = config or default_settings
    if network is None and config.offline:
        network = StaticNetworkProbe(False)
    elif network is None:
        probe = SystemNetworkProbe(config.connectivity_check_host, config.connectivity_check_port)
        probe.validate()
        network = probe
    return ArticleRepository(
        remote=NewsApiRemoteSource(config),
        cache=StoreArticleCache(JsonFileStore(config.cache_path)),
        network=network,
    )
