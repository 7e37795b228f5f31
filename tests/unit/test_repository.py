import time

import pytest
from structlog.testing import capture_logs

from fakes import CountingNetworkProbe, FakeRemoteSource, SpyCache
from news_feed.config import Settings
from news_feed.core.network import StaticNetworkProbe
from news_feed.core.repository import ArticleRepository, build_repository
from news_feed.models.result import Failure, FailureKind, Result
from news_feed.tools.cache import StoreArticleCache
from news_feed.tools.storage import JsonFileStore


def make_repository(remote, cache, connected: bool = True):
    network = CountingNetworkProbe(connected)
    return ArticleRepository(remote=remote, cache=cache, network=network), network


# ============================================================================
# Online
# ============================================================================


class TestOnline:
    """Repository behaviour when the network probe reports a connection."""

    def test_remote_success_returns_domain_articles(self, file_cache, sample_dto):
        remote = FakeRemoteSource(Result.success([sample_dto]))
        repository, network = make_repository(remote, SpyCache(file_cache))

        result = repository.get_articles()

        assert result.is_success
        assert result.value == [sample_dto.to_domain()]
        assert remote.calls == 1
        assert network.calls == 1

    def test_remote_success_writes_through_to_cache(self, file_cache, sample_dto, cached_dto):
        file_cache.cache_articles([cached_dto])
        remote = FakeRemoteSource(Result.success([sample_dto]))
        repository, _ = make_repository(remote, file_cache)

        before = int(time.time() * 1000)
        result = repository.get_articles()
        after = int(time.time() * 1000)

        cached = file_cache.get_last_articles()
        assert [a.to_domain() for a in cached.value] == result.value
        assert before <= file_cache.get_cached_timestamp() <= after
        assert repository.cached_timestamp() == file_cache.get_cached_timestamp()

    def test_empty_remote_result_is_success(self, file_cache):
        repository, _ = make_repository(FakeRemoteSource(Result.success([])), file_cache)

        result = repository.get_articles()

        assert result.is_success
        assert result.value == []
        assert file_cache.get_last_articles().value == []

    def test_api_key_failure_never_touches_cache(self, file_cache, cached_dto):
        file_cache.cache_articles([cached_dto])
        spy = SpyCache(file_cache)
        remote = FakeRemoteSource(Result.fail(Failure.api_key_not_configured()))
        repository, _ = make_repository(remote, spy)

        result = repository.get_articles()

        assert result.failure.kind is FailureKind.API_KEY_NOT_CONFIGURED
        assert spy.reads == 0
        assert spy.writes == 0

    def test_server_failure_falls_back_to_cache(self, file_cache, cached_dto, server_failure):
        file_cache.cache_articles([cached_dto])
        spy = SpyCache(file_cache)
        repository, _ = make_repository(FakeRemoteSource(server_failure), spy)

        result = repository.get_articles()

        assert result.is_success
        assert result.value == [cached_dto.to_domain()]
        assert spy.reads == 1
        assert spy.writes == 0

    def test_server_failure_with_empty_cache_is_cache_empty(self, file_cache, server_failure):
        repository, _ = make_repository(FakeRemoteSource(server_failure), file_cache)

        result = repository.get_articles()

        assert result.failure.kind is FailureKind.CACHE_EMPTY
        assert result.failure.detail is None

    def test_dropped_server_detail_is_logged(self, file_cache, server_failure):
        repository, _ = make_repository(FakeRemoteSource(server_failure), file_cache)

        with capture_logs() as logs:
            repository.get_articles()

        failed = [e for e in logs if e["event"] == "articles_remote_failed"]
        assert failed and failed[0]["detail"] == "Network error"
        assert any(e["event"] == "articles_cache_miss" for e in logs)

    def test_cache_write_failure_serves_previous_snapshot(self, file_cache, sample_dto, cached_dto):
        file_cache.cache_articles([cached_dto])
        spy = SpyCache(file_cache, fail_writes=OSError("read-only file system"))
        repository, _ = make_repository(FakeRemoteSource(Result.success([sample_dto])), spy)

        result = repository.get_articles()

        assert result.value == [cached_dto.to_domain()]
        assert spy.writes == 1
        assert spy.reads == 1


# ============================================================================
# Offline
# ============================================================================


class TestOffline:
    """Repository behaviour when the network probe reports no connection."""

    def test_offline_serves_cache_without_remote_call(self, file_cache, cached_dto, sample_dto):
        file_cache.cache_articles([cached_dto])
        remote = FakeRemoteSource(Result.success([sample_dto]))
        repository, _ = make_repository(remote, file_cache, connected=False)

        result = repository.get_articles()

        assert result.value == [cached_dto.to_domain()]
        assert remote.calls == 0

    def test_offline_with_empty_cache_is_cache_empty(self, file_cache, sample_dto):
        remote = FakeRemoteSource(Result.success([sample_dto]))
        repository, _ = make_repository(remote, file_cache, connected=False)

        result = repository.get_articles()

        assert result.failure.kind is FailureKind.CACHE_EMPTY
        assert remote.calls == 0


@pytest.mark.parametrize("connected", [True, False])
def test_never_written_cache_is_terminal(file_cache, server_failure, connected):
    repository, _ = make_repository(FakeRemoteSource(server_failure), file_cache, connected=connected)

    result = repository.get_articles()

    assert result.is_failure
    assert result.failure.kind is FailureKind.CACHE_EMPTY


def test_build_repository_uses_configured_cache_path(tmp_path, cached_dto):
    config = Settings(cache_path=str(tmp_path / "articles.json"), _env_file=None)
    StoreArticleCache(JsonFileStore(config.cache_path)).cache_articles([cached_dto])

    repository = build_repository(config, network=StaticNetworkProbe(False))

    assert repository.get_articles().value == [cached_dto.to_domain()]


def test_build_repository_offline_setting_skips_remote(tmp_path, cached_dto, monkeypatch):
    config = Settings(
        cache_path=str(tmp_path / "articles.json"), offline=True, news_api_key="key", _env_file=None
    )
    StoreArticleCache(JsonFileStore(config.cache_path)).cache_articles([cached_dto])

    def fail_request(*args, **kwargs):
        raise AssertionError("remote source must not be called while offline")

    monkeypatch.setattr("news_feed.tools.news_api.NewsApiRemoteSource.get_articles", fail_request)
    repository = build_repository(config)

    assert repository.get_articles().value == [cached_dto.to_domain()]
    repository.close()


def test_close_releases_remote_source(file_cache):
    remote = FakeRemoteSource(Result.success([]))
    repository, _ = make_repository(remote, file_cache)

    repository.close()

    assert remote.closed is True
