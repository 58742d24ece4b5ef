# === NAVMAP v1 ===
# {
#   "module": "CloudIO.ObjectStore.urls",
#   "purpose": "Classify paths and URLs into storage providers and bucket locations",
#   "sections": [
#     {"id": "cloudtype", "name": "CloudType", "anchor": "class-cloudtype", "kind": "class"},
#     {"id": "parse-url", "name": "parse_url", "anchor": "function-parse-url", "kind": "function"},
#     {"id": "local-path-from-url", "name": "local_path_from_url", "anchor": "function-local-path-from-url", "kind": "function"},
#     {"id": "cloudlocation", "name": "CloudLocation", "anchor": "class-cloudlocation", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""URL classification for object-store access.

Any string handed to the object-store layer is either an explicit URL
(``s3://bucket/key``, ``https://host/file``) or a filesystem path.  Paths are
made absolute against the current working directory and converted into
``file://`` URLs; URLs are normalised through :class:`httpx.URL` so the host is
lower-cased and the path percent-encoded.  The scheme then picks the provider.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import unquote
from urllib.request import url2pathname

import httpx

from .errors import InvalidInput

__all__ = [
    "CloudLocation",
    "CloudType",
    "local_path_from_url",
    "parse_url",
]

_SCHEME_SEPARATOR = "://"
_GLOB_CHARS = re.compile(r"[*?\[]")

UrlLike = Union[str, httpx.URL]


class CloudType(str, Enum):
    """Storage provider selected by a URL scheme."""

    AWS = "aws"
    AZURE = "azure"
    FILE = "file"
    GCP = "gcp"
    HTTP = "http"

    @classmethod
    def from_url(cls, parsed: httpx.URL) -> "CloudType":
        """Map the scheme of an already parsed URL to a provider tag."""

        try:
            return _SCHEME_TO_CLOUD[parsed.scheme.lower()]
        except KeyError:
            raise InvalidInput(f"unknown url scheme: {parsed.scheme!r}") from None

    @classmethod
    def from_str(cls, url: str) -> "CloudType":
        """Parse *url* (or a filesystem path) and return its provider tag."""

        return cls.from_url(parse_url(url))


_SCHEME_TO_CLOUD: Dict[str, CloudType] = {
    "s3": CloudType.AWS,
    "s3a": CloudType.AWS,
    "az": CloudType.AZURE,
    "azure": CloudType.AZURE,
    "adl": CloudType.AZURE,
    "abfs": CloudType.AZURE,
    "abfss": CloudType.AZURE,
    "gs": CloudType.GCP,
    "gcp": CloudType.GCP,
    "gcs": CloudType.GCP,
    "file": CloudType.FILE,
    "http": CloudType.HTTP,
    "https": CloudType.HTTP,
}


def parse_url(input: str) -> httpx.URL:
    """Return a normalised absolute URL for *input*.

    Args:
        input: Explicit URL (anything containing ``://``) or a filesystem path.
            Relative paths are resolved against the current working directory.

    Returns:
        Parsed :class:`httpx.URL`.

    Raises:
        InvalidInput: If the string is not a parseable URL.

    Examples:
        >>> str(parse_url("http://Users/Jane Doe/data.csv"))
        'http://users/Jane%20Doe/data.csv'
        >>> str(parse_url("/home/Jane Doe/data.csv"))
        'file:///home/Jane%20Doe/data.csv'
    """
    if _SCHEME_SEPARATOR in input:
        candidate = input
    else:
        path = Path(input)
        if not path.is_absolute():
            path = Path(os.getcwd()) / path
        # as_uri() percent-encodes and renders drive letters canonically.
        candidate = path.as_uri()
    try:
        return httpx.URL(candidate)
    except httpx.InvalidURL as exc:
        raise InvalidInput(f"invalid url {input!r}: {exc}") from exc


def local_path_from_url(url: UrlLike) -> Path:
    """Return the absolute filesystem path addressed by a ``file://`` URL."""

    parsed = url if isinstance(url, httpx.URL) else parse_url(url)
    if parsed.scheme != "file":
        raise InvalidInput(f"not a file url: {parsed}")
    raw_path = parsed.raw_path.decode("ascii").split("?", 1)[0]
    return Path(url2pathname(raw_path))


@dataclass(frozen=True)
class CloudLocation:
    """Bucket-level view of a storage URL.

    Attributes:
        scheme: URL scheme as written (``s3``, ``abfss``, ...).
        bucket: Bucket or container name; empty for ``file`` URLs.
        prefix: Object key or key prefix, without a leading slash.
        expansion: Glob pattern cut from the prefix, if any.
        store_url: Root URL the store is built from (``scheme://netloc``).
    """

    scheme: str
    bucket: str
    prefix: str
    expansion: Optional[str]
    store_url: str

    @property
    def cloud_type(self) -> CloudType:
        return _SCHEME_TO_CLOUD[self.scheme]

    @classmethod
    def from_url(cls, url: UrlLike, *, glob: bool = True) -> "CloudLocation":
        """Split *url* into bucket, prefix, and optional glob expansion.

        Raises:
            InvalidInput: For unknown schemes or cloud URLs without a bucket.
        """
        parsed = url if isinstance(url, httpx.URL) else parse_url(url)
        cloud_type = CloudType.from_url(parsed)
        scheme = parsed.scheme.lower()

        if cloud_type is CloudType.FILE:
            bucket = ""
            key = str(local_path_from_url(parsed))
            store_url = "file:///"
        else:
            if cloud_type is CloudType.AZURE and parsed.userinfo:
                # abfs[s]://container@account.dfs.core.windows.net/path
                bucket = unquote(parsed.userinfo.decode("ascii"))
            else:
                bucket = parsed.host
            if not bucket:
                raise InvalidInput(f"missing bucket name in url: {parsed}")
            key = parsed.path
            authority = parsed.netloc.decode("ascii")
            if parsed.userinfo:
                authority = f"{parsed.userinfo.decode('ascii')}@{authority}"
            store_url = f"{scheme}://{authority}"

        prefix = key.lstrip("/") if cloud_type is not CloudType.FILE else key
        expansion: Optional[str] = None
        if glob:
            match = _GLOB_CHARS.search(prefix)
            if match is not None:
                cut = prefix.rfind("/", 0, match.start()) + 1
                expansion = prefix[cut:]
                prefix = prefix[:cut]

        return cls(
            scheme=scheme,
            bucket=bucket,
            prefix=prefix,
            expansion=expansion,
            store_url=store_url,
        )
