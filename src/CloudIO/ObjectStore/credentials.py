"""Best-effort fallback to on-disk credential files.

When neither explicit overrides nor the environment provide a value, the AWS
CLI's ``~/.aws/config`` and ``~/.aws/credentials`` files usually do.  This
module scans such files with single-capture-group patterns and fills in the
still-missing keys of a :class:`ConfigBuilder`.

Behaviour worth knowing:
- A file is skipped without being opened when every key it could provide is
  already set.
- Each file is read once per group, however many keys it provides.
- Any failure (missing file, unreadable file, invalid UTF-8, pattern without a
  match) ends that :func:`read_config` call quietly; whatever was set so far
  stays. Callers wanting files to succeed or fail independently pass one
  source per call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Pattern, Sequence, Tuple, Union

from .config_keys import ConfigBuilder, K, S3ConfigKey

logger = logging.getLogger(__name__)

__all__ = [
    "CredentialFileRule",
    "CredentialSource",
    "DEFAULT_AWS_CREDENTIAL_SOURCES",
    "read_config",
]


@dataclass(frozen=True)
class CredentialFileRule:
    """Extract one key from a credential file with a single capture group."""

    pattern: Pattern[str]
    key: S3ConfigKey

    @classmethod
    def of(cls, pattern: Union[str, Pattern[str]], key: S3ConfigKey) -> "CredentialFileRule":
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        return cls(pattern=compiled, key=key)


# (file path, rules reading from that file)
CredentialSource = Tuple[Path, Sequence[CredentialFileRule]]

DEFAULT_AWS_CREDENTIAL_SOURCES: Tuple[CredentialSource, ...] = (
    (
        Path("~/.aws/config"),
        (CredentialFileRule.of(r"region = (.*)\n", S3ConfigKey.REGION),),
    ),
    (
        Path("~/.aws/credentials"),
        (
            CredentialFileRule.of(r"aws_access_key_id = (.*)\n", S3ConfigKey.ACCESS_KEY_ID),
            CredentialFileRule.of(
                r"aws_secret_access_key = (.*)\n", S3ConfigKey.SECRET_ACCESS_KEY
            ),
        ),
    ),
)


def _read_text(path: Path) -> str:
    """Read *path* (with ``~`` expanded) as UTF-8 text."""

    with open(path.expanduser(), "rb") as handle:
        return handle.read().decode("utf-8")


def _apply_sources(
    builder: ConfigBuilder[K], sources: Sequence[CredentialSource]
) -> Optional[str]:
    """Fill unset keys from *sources*; return a reason string when aborting."""

    for path, rules in sources:
        if all(builder.is_set(rule.key) for rule in rules):
            continue

        try:
            content = _read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            return f"could not read {path}: {exc}"

        for rule in rules:
            if builder.is_set(rule.key):
                continue
            match = rule.pattern.search(content)
            if match is None or match.group(1) is None:
                return f"no match for {rule.key.value} in {path}"
            builder.with_config(rule.key, match.group(1))
            logger.debug(
                "Config value taken from credential file",
                extra={"stage": "credentials", "key": rule.key.value, "path": str(path)},
            )
    return None


def read_config(
    builder: ConfigBuilder[K],
    sources: Sequence[CredentialSource] = DEFAULT_AWS_CREDENTIAL_SOURCES,
) -> bool:
    """Fill keys missing from *builder* using credential files.

    Args:
        builder: Builder to enrich in place; keys already set are never touched.
        sources: ``(path, rules)`` groups, scanned in order.

    Returns:
        ``True`` when every group was handled, ``False`` when the attempt was
        abandoned early. Either way the builder is left in a usable state.
    """
    reason = _apply_sources(builder, sources)
    if reason is not None:
        logger.debug(
            "Credential file fallback skipped: %s", reason, extra={"stage": "credentials"}
        )
        return False
    return True
