"""prsift.yaml configuration: bot detection and default query options.

Example::

    repo:
      owner: your-org
      name: your-repo
    bots:
      patterns: ["*[bot]"]
      logins: [renovate]
    defaults:
      include_bots: true
      exclude_authors: []
      sort: priority
      suggestions:
        include_nits: false
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .pipeline import SortStrategy, SuggestionOptions

CONFIG_CANDIDATES = ["prsift.yaml", ".prsift.yaml", "prsift.yml", ".prsift.yml"]
DEFAULT_BOT_PATTERNS = ["*[bot]"]


def login_matches(login: str, pattern: str) -> bool:
    """Match a login against a pattern where only * and ? are wildcards.

    Brackets are literal, so "*[bot]" matches "dependabot[bot]".
    """
    regex = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.fullmatch(regex, login, flags=re.IGNORECASE) is not None


@dataclass
class ReviewConfig:
    """Loaded prsift configuration."""

    repo_owner: str | None = None
    repo_name: str | None = None
    bot_patterns: list[str] = field(default_factory=lambda: DEFAULT_BOT_PATTERNS.copy())
    bot_logins: list[str] = field(default_factory=list)

    include_bots: bool = True
    exclude_authors: list[str] = field(default_factory=list)
    sort: SortStrategy = SortStrategy.PRIORITY
    parse_review_bodies: bool = True
    include_status_indicators: bool = True
    priority_ordering: bool = True
    suggestions: SuggestionOptions = field(default_factory=SuggestionOptions)

    @classmethod
    def load(cls, path: Path | str | None = None) -> ReviewConfig:
        """Load config from YAML file or return defaults."""
        if path is None:
            for candidate in CONFIG_CANDIDATES:
                if Path(candidate).exists():
                    path = candidate
                    break

        if path is None or not Path(path).exists():
            return cls.default()

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewConfig:
        """Create config from dictionary (e.g., parsed YAML)."""
        repo_data = data.get("repo") or {}
        bots_data = data.get("bots") or {}
        defaults = data.get("defaults") or {}

        suggestion_fields = {f.name for f in fields(SuggestionOptions)}
        suggestions_data = defaults.get("suggestions") or {}
        unknown = set(suggestions_data) - suggestion_fields
        if unknown:
            raise ValueError(f"Unknown suggestion options in config: {', '.join(sorted(unknown))}")

        return cls(
            repo_owner=repo_data.get("owner"),
            repo_name=repo_data.get("name"),
            bot_patterns=bots_data.get("patterns", DEFAULT_BOT_PATTERNS.copy()),
            bot_logins=bots_data.get("logins", []),
            include_bots=defaults.get("include_bots", True),
            exclude_authors=defaults.get("exclude_authors", []),
            sort=SortStrategy(defaults.get("sort", SortStrategy.PRIORITY.value)),
            parse_review_bodies=defaults.get("parse_review_bodies", True),
            include_status_indicators=defaults.get("include_status_indicators", True),
            priority_ordering=defaults.get("priority_ordering", True),
            suggestions=SuggestionOptions(**suggestions_data),
        )

    @classmethod
    def default(cls) -> ReviewConfig:
        return cls()

    def is_bot(self, login: str | None, user_type: str | None = None) -> bool:
        """Check if a user is a bot.

        Matches the GitHub API user type ("Bot"), the configured wildcard
        patterns (default: *[bot]) and the explicit login list.
        """
        if user_type == "Bot":
            return True
        if not login:
            return False
        if login in self.bot_logins:
            return True
        return any(login_matches(login, pattern) for pattern in self.bot_patterns)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data: dict[str, Any] = {}
        if self.repo_owner and self.repo_name:
            data["repo"] = {"owner": self.repo_owner, "name": self.repo_name}

        data["bots"] = {"patterns": self.bot_patterns, "logins": self.bot_logins}
        data["defaults"] = {
            "include_bots": self.include_bots,
            "exclude_authors": self.exclude_authors,
            "sort": self.sort.value,
            "parse_review_bodies": self.parse_review_bodies,
            "include_status_indicators": self.include_status_indicators,
            "priority_ordering": self.priority_ordering,
            "suggestions": {f.name: getattr(self.suggestions, f.name) for f in fields(SuggestionOptions)},
        }

        return yaml.dump(data, default_flow_style=False, sort_keys=False)
