"""Fixtures shared across the test suite."""

from __future__ import annotations

import os

# Rich reads these when a Console is created; CLI assertions need plain text.
os.environ.pop("FORCE_COLOR", None)
os.environ["NO_COLOR"] = "1"

import pytest  # noqa: E402
from fakes import API_KEY, BLOG_URL, FakeGhost, MemorySecretStore, MemoryVault  # noqa: E402

from ghostpost.config import GhostPostConfig, GhostSectionConfig  # noqa: E402


@pytest.fixture
def vault() -> MemoryVault:
    return MemoryVault()


@pytest.fixture
def secrets() -> MemorySecretStore:
    return MemorySecretStore({"ghost-admin-api-key": API_KEY})


@pytest.fixture
def ghost() -> FakeGhost:
    return FakeGhost()


@pytest.fixture
def config() -> GhostPostConfig:
    return GhostPostConfig(ghost=GhostSectionConfig(url=BLOG_URL))
