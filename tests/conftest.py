"""Test fixtures for the maven package reaper."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from pydantic import SecretStr

from maven_reaper.config import RegistryAuth, RegistryConfig
from maven_reaper.factory import Factory
from maven_reaper.models.owner_category import OwnerCategory

from support.registry import FakeRegistry

SUPPORT_DIR = Path(__file__).parent / "support"


@pytest.fixture
def registry_data() -> dict[str, Any]:
    """Packages and versions to preload into the fake registry."""
    return json.loads((SUPPORT_DIR / "registry.json").read_text())


@pytest.fixture
def fake_registry(registry_data: dict[str, Any]) -> FakeRegistry:
    """Fake registry API."""
    return FakeRegistry(registry_data)


@pytest.fixture
def registry_cfg() -> RegistryConfig:
    """Config for a user-owned set of maven packages."""
    return RegistryConfig(
        owner="octocat",
        owner_category=OwnerCategory.USER,
        page_size=2,
        auth=RegistryAuth(token=SecretStr("ghp_not_a_real_token")),
        dry_run=False,
        debug=True,
    )


@pytest.fixture
def factory(
    registry_cfg: RegistryConfig, fake_registry: FakeRegistry
) -> Iterator[Factory]:
    """Factory whose client talks to the fake registry."""
    with Factory.standalone(
        registry_cfg, transport=fake_registry.transport
    ) as factory:
        yield factory


@pytest.fixture
def test_config() -> Path:
    """YAML configuration file."""
    return SUPPORT_DIR / "config.yaml"
