"""
Shared test fixtures and configuration for yaccs tests.

This module provides common fixtures used across all test types:
- Protection of the real ~/.yaccs store
- Temporary store roots
- Sample provider profiles
- Click test runner
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from yaccs.profile_codec import ProviderProfile, TierModels
from yaccs.profile_store import ProfileStore

# ============================================================================
# PROTECTION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def protect_real_store(monkeypatch):
    """Keep tests away from the user's real ~/.yaccs.

    Test mode makes the store and config manager refuse the default root,
    and YACCS_HOME is cleared so only explicit roots are used.
    """
    monkeypatch.setenv("YACCS_TEST_MODE", "true")
    monkeypatch.delenv("YACCS_HOME", raising=False)
    yield


# ============================================================================
# DIRECTORY FIXTURES
# ============================================================================


@pytest.fixture
def store_root(tmp_path) -> Path:
    """Temporary store root (not created until first use)."""
    return tmp_path / ".yaccs"


@pytest.fixture
def store(store_root) -> ProfileStore:
    """ProfileStore on a temporary root."""
    return ProfileStore(store_root)


# ============================================================================
# PROFILE FIXTURES
# ============================================================================


@pytest.fixture
def make_profile():
    """Factory for valid provider profiles."""

    def _make(
        name: str = "glm",
        base_url: str = "https://x",
        api_key: str = "sk_123",
        main: str = "m1",
        custom_vars: dict[str, str] | None = None,
        **tiers,
    ) -> ProviderProfile:
        return ProviderProfile(
            name=name,
            base_url=base_url,
            api_key=api_key,
            models=TierModels(main=main, **tiers),
            custom_vars=dict(custom_vars or {}),
        )

    return _make


@pytest.fixture
def glm_profile(make_profile) -> ProviderProfile:
    return make_profile()


@pytest.fixture
def openrouter_profile(make_profile) -> ProviderProfile:
    return make_profile(
        name="openrouter",
        base_url="https://openrouter.ai/api",
        api_key="sk-or-v1-abcdefghijklmnop",
        main="anthropic/claude-sonnet-4",
        haiku="anthropic/claude-haiku-4",
    )


# ============================================================================
# CLI FIXTURES
# ============================================================================


@pytest.fixture
def runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner, store_root):
    """Invoke the yaccs CLI against the temporary store root."""
    from yaccs.cli import main

    def _invoke(*args: str, input: str | None = None):
        return runner.invoke(main, ["--root", str(store_root), *args], input=input)

    return _invoke
