from typing import List, Protocol

import httpx
from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..logging_config import get_logger
from ..models.news import ArticleDto, ArticlesResponse
from ..models.result import Failure, Result


logger = get_logger("tools.news_api")

API_KEY_HEADER = "X-Api-Key"
TOP_HEADLINES_PATH = "top-headlines"


class ArticleRemoteSource(Protocol):
    def get_articles(self) -> Result[List[ArticleDto]]:
        ...

    def close(self) -> None:
        ...


def build_client(config: Settings) -> httpx.Client:
    timeout = httpx.Timeout(
        config.read_timeout_seconds, connect=config.connect_timeout_seconds
    )
    return httpx.Client(base_url=config.news_api_base_url, timeout=timeout)


class NewsApiRemoteSource:
    """Fetch top headlines from NewsAPI.

    Failures are classified rather than raised: a missing or rejected key
    becomes ``API_KEY_NOT_CONFIGURED`` and everything else becomes ``SERVER``.
    """

    def __init__(self, config: Settings | None = None, client: httpx.Client | None = None) -> None:
        self._config = config or default_settings
        self._client = client or build_client(self._config)

    def get_articles(self) -> Result[List[ArticleDto]]:
        if not self._config.is_api_key_configured:
            logger.warning("news_api_key_missing")
            return Result.fail(Failure.api_key_not_configured())

        params = {
            "country": self._config.news_country,
            "category": self._config.news_category,
        }
        logger.info("news_api_request", **params)

        try:
            response = self._client.get(
                TOP_HEADLINES_PATH,
                params=params,
                headers={API_KEY_HEADER: self._config.news_api_key or ""},
            )
            body = ArticlesResponse.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("news_api_transport_error", error=str(exc))
            return Result.fail(Failure.server(str(exc)))

        if body.is_api_key_error:
            logger.warning("news_api_key_rejected", code=body.code)
            return Result.fail(Failure.api_key_not_configured())

        if not body.is_success:
            message = body.message or "Unknown API error"
            logger.warning("news_api_error_response", code=body.code, message=message)
            return Result.fail(Failure.server(message))

        articles = body.articles or []
        logger.info("news_api_response", results=len(articles), total=body.total_results)
        return Result.success(articles)

    def close(self) -> None:
        self._client.close()
