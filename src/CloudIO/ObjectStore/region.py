# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.region",
#   "purpose": "Bucket-region discovery with a bounded LRU cache and a budgeted network probe",
#   "sections": [
#     {"id": "regioncache", "name": "RegionCache", "anchor": "class-regioncache", "kind": "class"},
#     {"id": "regionresolver", "name": "RegionResolver", "anchor": "class-regionresolver", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Bucket-region discovery for S3.

Requests to S3 must be signed for the bucket's region.  When the caller gave
no region, the resolver works through these steps in order:

1. **Cache**: a bounded LRU mapping bucket → region shared by every build call
   that uses the same resolver.
2. **Endpoint override**: a custom endpoint (MinIO, R2, ...) gets the fixed
   ``us-east-1`` placeholder; probing AWS for it would be meaningless.
3. **Network probe**: a single ``HEAD https://{bucket}.s3.amazonaws.com`` whose
   ``x-amz-bucket-region`` header names the region. The probe draws from the
   process concurrency budget and populates the cache on success.

A failed probe is not an error: the build proceeds without a region and a
``UserWarning`` advises setting it manually.

The cache lock is held only around lookups and inserts, never across the
probe, so concurrent callers for the same uncached bucket may probe twice;
the last insert wins and both values are equal.
"""

from __future__ import annotations

import logging
import threading
import warnings
from collections import OrderedDict
from typing import Callable, Optional

import httpx

from CloudIO.concurrency import ConcurrencyBudget, get_concurrency_budget

from .config_keys import ConfigBuilder, S3ConfigKey
from .settings import DEFAULT_REGION_CACHE_SIZE, DEFAULT_REGION_PROBE_TIMEOUT

logger = logging.getLogger(__name__)

__all__ = [
    "BUCKET_REGION_HEADER",
    "DEFAULT_FALLBACK_REGION",
    "REGION_PROBE_URL",
    "RegionCache",
    "RegionResolver",
]

DEFAULT_FALLBACK_REGION = "us-east-1"
REGION_PROBE_URL = "https://{bucket}.s3.amazonaws.com"
BUCKET_REGION_HEADER = "x-amz-bucket-region"

_MISSING_REGION_WARNING = (
    "'(default_)region' not set and it could not be determined from bucket {bucket!r}"
    "{detail}\n\nSet the region manually to silence this warning."
)


class RegionCache:
    """Thread-safe bucket → region mapping with least-recently-used eviction."""

    def __init__(self, capacity: int = DEFAULT_REGION_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got: {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[str, str]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, bucket: str) -> Optional[str]:
        with self._lock:
            region = self._entries.get(bucket)
            if region is not None:
                self._entries.move_to_end(bucket)
            return region

    def insert(self, bucket: str, region: str) -> None:
        with self._lock:
            self._entries[bucket] = region
            self._entries.move_to_end(bucket)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted bucket region", extra={"bucket": evicted})

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, bucket: object) -> bool:
        with self._lock:
            return bucket in self._entries


class RegionResolver:
    """Fill in the S3 region of a config builder when the caller left it unset.

    Attributes:
        cache: Shared bucket → region cache.
        budget: Concurrency budget the probe draws one permit from; ``None``
            selects the process-wide budget at probe time.
        client_factory: Zero-argument callable returning an ``httpx.AsyncClient``.
        probe_timeout: Seconds allowed for the probe request.
    """

    def __init__(
        self,
        cache: Optional[RegionCache] = None,
        *,
        budget: Optional[ConcurrencyBudget] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        probe_timeout: float = DEFAULT_REGION_PROBE_TIMEOUT,
        fallback_region: str = DEFAULT_FALLBACK_REGION,
        probe_url: str = REGION_PROBE_URL,
    ) -> None:
        self.cache = cache if cache is not None else RegionCache()
        self.budget = budget
        self.client_factory = client_factory or self._default_client
        self.probe_timeout = probe_timeout
        self.fallback_region = fallback_region
        self.probe_url = probe_url

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.probe_timeout, follow_redirects=False)

    @staticmethod
    def needs_region(builder: ConfigBuilder[S3ConfigKey]) -> bool:
        return not (
            builder.is_set(S3ConfigKey.DEFAULT_REGION) or builder.is_set(S3ConfigKey.REGION)
        )

    async def resolve(self, builder: ConfigBuilder[S3ConfigKey], bucket: str) -> Optional[str]:
        """Set :attr:`S3ConfigKey.REGION` on *builder* if it needs one.

        Args:
            builder: Merged configuration for the current build call.
            bucket: Bucket addressed by the URL being built.

        Returns:
            The region applied by this call, or ``None`` if none was applied
            (already configured, or discovery failed).
        """
        if not self.needs_region(builder):
            return None

        region = self.cache.get(bucket)
        if region is not None:
            logger.debug("Bucket region cache hit", extra={"bucket": bucket, "region": region})
            builder.with_config(S3ConfigKey.REGION, region)
            return region

        if builder.is_set(S3ConfigKey.ENDPOINT):
            # Non-AWS endpoints still need some region for request signing.
            builder.with_config(S3ConfigKey.REGION, self.fallback_region)
            return self.fallback_region

        region = await self.probe(bucket)
        if region is None:
            return None
        self.cache.insert(bucket, region)
        builder.with_config(S3ConfigKey.REGION, region)
        return region

    async def probe(self, bucket: str) -> Optional[str]:
        """Ask AWS for the region of *bucket*; ``None`` (plus a warning) on failure."""

        budget = self.budget or get_concurrency_budget()
        try:
            url = httpx.URL(self.probe_url.format(bucket=bucket))
            logger.info(
                "Region not configured; probing bucket region",
                extra={"stage": "region", "bucket": bucket, "url": str(url)},
            )
            async with budget.acquire(1):
                async with self.client_factory() as client:
                    response = await client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._warn(bucket, f": {exc.__class__.__name__}: {exc}")
            return None

        region = response.headers.get(BUCKET_REGION_HEADER)
        if not region:
            self._warn(bucket, f" (HTTP {response.status_code}, no {BUCKET_REGION_HEADER} header)")
            return None

        logger.debug(
            "Bucket region discovered",
            extra={"stage": "region", "bucket": bucket, "region": region},
        )
        return region

    @staticmethod
    def _warn(bucket: str, detail: str) -> None:
        logger.warning(
            "Bucket region probe failed",
            extra={"stage": "region", "bucket": bucket, "detail": detail},
        )
        warnings.warn(
            _MISSING_REGION_WARNING.format(bucket=bucket, detail=detail),
            UserWarning,
            stacklevel=3,
        )
