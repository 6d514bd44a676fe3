"""Shared test fixtures."""

import pytest

from prsift.extractors.users import set_config
from prsift.review_config import ReviewConfig


@pytest.fixture
def github_client_uninit():
    """Create an uninitialized GitHubClient with a fake PAT token.

    Use this for sync tests that don't need the async context manager.
    """
    from prsift.github_client import GitHubClient

    return GitHubClient(token="fake-token")


@pytest.fixture(autouse=True)
def default_bot_config():
    """Reset the module-level bot detection config between tests."""
    set_config(ReviewConfig.default())
    yield
    set_config(ReviewConfig.default())
