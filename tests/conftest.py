# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "isolated-cloud-env",
#       "name": "isolated_cloud_env",
#       "anchor": "fixture-isolated-cloud-env",
#       "kind": "fixture"
#     },
#     {
#       "id": "mock-async-client-factory",
#       "name": "mock_client_factory",
#       "anchor": "fixture-mock-client-factory",
#       "kind": "fixture"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

This module configures shared pytest behaviour: ``src`` is placed on
``sys.path`` and every test runs with provider credentials stripped from the
environment so results never depend on the developer's machine.

Key Scenarios:
- Removes ``AWS_*``, ``AZURE_*``, ``GOOGLE_*`` and ``CLOUDIO_*`` variables
- Resets memoised settings and the process-wide concurrency budget
- Builds ``httpx.AsyncClient`` factories backed by ``httpx.MockTransport``
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Generator, List

import httpx
import pytest

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from CloudIO.concurrency import reset_concurrency_budget  # noqa: E402
from CloudIO.ObjectStore.settings import reset_settings  # noqa: E402

_ISOLATED_PREFIXES = ("AWS_", "AZURE_", "GOOGLE_", "CLOUDIO_")


# --- Fixtures ---


@pytest.fixture(autouse=True)
def isolated_cloud_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Strip provider credentials and reset cached process state around each test."""

    for name in list(os.environ):
        if name.upper().startswith(_ISOLATED_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_concurrency_budget()
    yield
    reset_settings()
    reset_concurrency_budget()


class ProbeRecorder:
    """Records requests seen by a mocked region probe."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def mock_client_factory() -> Callable[..., Any]:
    """Return a builder of ``httpx.AsyncClient`` factories over ``MockTransport``.

    Example:
        def test_probe(mock_client_factory):
            recorder, factory = mock_client_factory(
                lambda request: httpx.Response(200, headers={"x-amz-bucket-region": "eu-west-1"})
            )
    """

    def _build(handler: Callable[[httpx.Request], Any]):
        recorder = ProbeRecorder()

        def _recording_handler(request: httpx.Request) -> Any:
            recorder.requests.append(request)
            return handler(request)

        def _factory() -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(_recording_handler))

        return recorder, _factory

    return _build


@pytest.fixture
def forbidden_client_factory() -> Callable[[], httpx.AsyncClient]:
    """Client factory that fails the test if a network probe is attempted."""

    def _factory() -> httpx.AsyncClient:
        raise AssertionError("network probe must not happen")

    return _factory
