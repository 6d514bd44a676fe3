"""Author extraction and bot detection."""

from ..models import UserRecord
from ..review_config import ReviewConfig

# Module-level config instance for bot detection
# This gets set when the CLI or MCP server starts
_config: ReviewConfig | None = None


def set_config(config: ReviewConfig) -> None:
    """Set the review config for bot detection."""
    global _config
    _config = config


def get_config() -> ReviewConfig:
    """Get the review config, using defaults if not set."""
    global _config
    if _config is None:
        _config = ReviewConfig.default()
    return _config


def is_bot(user: UserRecord | None) -> bool:
    """Check if user is a bot/GitHub App.

    Uses the review config's is_bot method which supports:
    - GitHub API user type ("Bot")
    - Glob patterns (default: *[bot])
    - Explicit login list from config
    """
    if user is None:
        return False
    return get_config().is_bot(user.login, user.type)


def author_login(user: UserRecord | None) -> str:
    """Login of a comment author, "unknown" when GitHub omits the user."""
    if user is None or not user.login:
        return "unknown"
    return user.login
