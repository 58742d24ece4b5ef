"""Tests for bucket-region discovery.

Tests cover:
- LRU eviction and recency refresh in :class:`RegionCache`
- Short-circuits: configured region, cache hit, custom endpoint
- Probe success, missing header, transport failure, cancellation
"""

import asyncio

import httpx
import pytest

from CloudIO.concurrency import ConcurrencyBudget
from CloudIO.ObjectStore import (
    DEFAULT_FALLBACK_REGION,
    ConfigBuilder,
    RegionCache,
    RegionResolver,
    S3ConfigKey,
)
from CloudIO.ObjectStore.region import BUCKET_REGION_HEADER


class TestRegionCache:
    def test_default_capacity(self):
        assert RegionCache().capacity == 32

    def test_least_recently_used_evicted(self):
        cache = RegionCache(capacity=32)
        for index in range(33):
            cache.insert(f"bucket-{index}", "us-west-2")

        assert len(cache) == 32
        assert "bucket-0" not in cache
        assert cache.get("bucket-32") == "us-west-2"

    def test_lookup_refreshes_recency(self):
        cache = RegionCache(capacity=2)
        cache.insert("a", "eu-west-1")
        cache.insert("b", "eu-west-2")

        assert cache.get("a") == "eu-west-1"
        cache.insert("c", "eu-west-3")

        assert "a" in cache
        assert "b" not in cache

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RegionCache(capacity=0)


class TestResolveShortCircuits:
    def test_configured_region_skips_everything(self, forbidden_client_factory):
        resolver = RegionResolver(client_factory=forbidden_client_factory)
        builder = ConfigBuilder(S3ConfigKey).with_config(S3ConfigKey.REGION, "eu-west-1")

        assert asyncio.run(resolver.resolve(builder, "bucket")) is None
        assert builder.get_config_value(S3ConfigKey.REGION) == "eu-west-1"

    def test_default_region_counts_as_configured(self, forbidden_client_factory):
        resolver = RegionResolver(client_factory=forbidden_client_factory)
        builder = ConfigBuilder(S3ConfigKey).with_config(S3ConfigKey.DEFAULT_REGION, "eu-west-1")

        assert asyncio.run(resolver.resolve(builder, "bucket")) is None
        assert not builder.is_set(S3ConfigKey.REGION)

    def test_cache_hit(self, forbidden_client_factory):
        cache = RegionCache()
        cache.insert("bucket", "ap-northeast-1")
        resolver = RegionResolver(cache, client_factory=forbidden_client_factory)
        builder = ConfigBuilder(S3ConfigKey)

        assert asyncio.run(resolver.resolve(builder, "bucket")) == "ap-northeast-1"
        assert builder.get_config_value(S3ConfigKey.REGION) == "ap-northeast-1"

    def test_custom_endpoint_uses_fallback_region(self, forbidden_client_factory):
        resolver = RegionResolver(client_factory=forbidden_client_factory)
        builder = ConfigBuilder(S3ConfigKey).with_config(
            S3ConfigKey.ENDPOINT, "http://localhost:9000"
        )

        assert asyncio.run(resolver.resolve(builder, "bucket")) == DEFAULT_FALLBACK_REGION
        assert builder.get_config_value(S3ConfigKey.REGION) == "us-east-1"
        assert "bucket" not in resolver.cache


class TestProbe:
    def test_probe_success_populates_cache(self, mock_client_factory):
        recorder, factory = mock_client_factory(
            lambda request: httpx.Response(403, headers={BUCKET_REGION_HEADER: "eu-north-1"})
        )
        resolver = RegionResolver(client_factory=factory, budget=ConcurrencyBudget(1))
        builder = ConfigBuilder(S3ConfigKey)

        region = asyncio.run(resolver.resolve(builder, "my-bucket"))

        assert region == "eu-north-1"
        assert builder.get_config_value(S3ConfigKey.REGION) == "eu-north-1"
        assert resolver.cache.get("my-bucket") == "eu-north-1"
        assert recorder.calls == 1
        request = recorder.requests[0]
        assert request.method == "HEAD"
        assert request.url.scheme == "https"
        assert request.url.host == "my-bucket.s3.amazonaws.com"

    def test_second_resolve_served_from_cache(self, mock_client_factory):
        recorder, factory = mock_client_factory(
            lambda request: httpx.Response(200, headers={BUCKET_REGION_HEADER: "us-west-1"})
        )
        resolver = RegionResolver(client_factory=factory)

        async def _twice():
            await resolver.resolve(ConfigBuilder(S3ConfigKey), "bucket")
            return await resolver.resolve(ConfigBuilder(S3ConfigKey), "bucket")

        assert asyncio.run(_twice()) == "us-west-1"
        assert recorder.calls == 1

    def test_missing_header_warns(self, mock_client_factory):
        _, factory = mock_client_factory(lambda request: httpx.Response(404))
        resolver = RegionResolver(client_factory=factory)
        builder = ConfigBuilder(S3ConfigKey)

        with pytest.warns(UserWarning, match="Set the region manually"):
            region = asyncio.run(resolver.resolve(builder, "bucket"))

        assert region is None
        assert not builder.is_set(S3ConfigKey.REGION)
        assert len(resolver.cache) == 0

    def test_transport_error_warns(self, mock_client_factory):
        def _fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        _, factory = mock_client_factory(_fail)
        resolver = RegionResolver(client_factory=factory)
        builder = ConfigBuilder(S3ConfigKey)

        with pytest.warns(UserWarning, match="ConnectError"):
            region = asyncio.run(resolver.resolve(builder, "bucket"))

        assert region is None
        assert not builder.is_set(S3ConfigKey.REGION)

    def test_unaddressable_bucket_warns(self, forbidden_client_factory):
        resolver = RegionResolver(client_factory=forbidden_client_factory)
        builder = ConfigBuilder(S3ConfigKey)

        with pytest.warns(UserWarning, match="InvalidURL"):
            region = asyncio.run(resolver.resolve(builder, "::1"))

        assert region is None
        assert not builder.is_set(S3ConfigKey.REGION)
        assert "::1" not in resolver.cache

    def test_cancelled_probe_leaves_cache_untouched(self, mock_client_factory):
        async def _hang(request):
            await asyncio.sleep(30)
            return httpx.Response(200, headers={BUCKET_REGION_HEADER: "eu-west-1"})

        _, factory = mock_client_factory(_hang)
        budget = ConcurrencyBudget(1)
        resolver = RegionResolver(client_factory=factory, budget=budget)

        async def _scenario():
            task = asyncio.create_task(resolver.resolve(ConfigBuilder(S3ConfigKey), "bucket"))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return budget.available()

        assert asyncio.run(_scenario()) == 1
        assert "bucket" not in resolver.cache

    def test_probe_holds_one_permit(self, mock_client_factory):
        budget = ConcurrencyBudget(3)
        seen = []

        def _handler(request):
            seen.append(budget.available())
            return httpx.Response(200, headers={BUCKET_REGION_HEADER: "eu-west-1"})

        _, factory = mock_client_factory(_handler)
        resolver = RegionResolver(client_factory=factory, budget=budget)

        asyncio.run(resolver.resolve(ConfigBuilder(S3ConfigKey), "bucket"))

        assert seen == [2]
