"""Pull request references and repository detection.

Parses PR identifiers (``owner/repo#123``, URLs, bare numbers) and detects
the default repository from env vars, prsift.yaml or the git remote.
"""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class RepoInfo:
    """Repository information."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class PullRequestRef:
    """A pull request in a specific repository."""

    owner: str
    repo: str
    number: int

    @property
    def repo_full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/pull/{self.number}"


# GitHub logins use [\w-]; repo names may also contain dots
PR_FORMATS = [
    re.compile(r"^([\w-]+)/([\w.-]+)#(\d+)$"),  # owner/repo#123
    re.compile(r"^([\w-]+)/([\w.-]+)/pulls?/(\d+)$"),  # owner/repo/pull/123
    re.compile(r"^https?://github\.com/([\w-]+)/([\w.-]+)/pull/(\d+)/?$"),
]
BARE_NUMBER = re.compile(r"^#?(\d+)$")


def parse_pr_identifier(text: str, default_repo: RepoInfo | None = None) -> PullRequestRef:
    """Parse a PR identifier.

    Bare numbers (``123`` or ``#123``) are resolved against ``default_repo``,
    falling back to get_repo().

    Raises ValueError if the identifier cannot be parsed.
    """
    value = text.strip()

    for pattern in PR_FORMATS:
        m = pattern.match(value)
        if m:
            return PullRequestRef(owner=m.group(1), repo=m.group(2), number=int(m.group(3)))

    m = BARE_NUMBER.match(value)
    if m:
        repo = default_repo or get_repo()
        return PullRequestRef(owner=repo.owner, repo=repo.name, number=int(m.group(1)))

    raise ValueError(
        f'Invalid PR identifier: "{text}"\n'
        "Expected formats:\n"
        "  - owner/repo#123\n"
        "  - owner/repo/pull/123\n"
        "  - https://github.com/owner/repo/pull/123\n"
        "  - 123 (uses the detected repository)"
    )


def parse_git_remote_url(url: str) -> RepoInfo | None:
    """Parse owner/repo from git remote URL.

    Supports:
    - git@github.com:owner/repo.git
    - https://github.com/owner/repo.git
    - https://github.com/owner/repo
    - ssh://git@github.com/owner/repo.git
    """
    # SSH format: git@github.com:owner/repo.git
    ssh_match = re.match(r"git@[\w.-]+:([^/]+)/([^/]+?)(?:\.git)?$", url)
    if ssh_match:
        return RepoInfo(owner=ssh_match.group(1), name=ssh_match.group(2))

    # HTTPS format: https://github.com/owner/repo.git
    https_match = re.match(r"https?://[\w.-]+/([^/]+)/([^/]+?)(?:\.git)?$", url)
    if https_match:
        return RepoInfo(owner=https_match.group(1), name=https_match.group(2))

    # SSH with ssh:// prefix
    ssh_url_match = re.match(r"ssh://git@[\w.-]+/([^/]+)/([^/]+?)(?:\.git)?$", url)
    if ssh_url_match:
        return RepoInfo(owner=ssh_url_match.group(1), name=ssh_url_match.group(2))

    return None


def get_git_remote_url(remote: str = "origin") -> str | None:
    """Get the URL of a git remote."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def detect_repo_from_git() -> RepoInfo | None:
    """Detect repo from git remote in current directory."""
    url = get_git_remote_url("origin")
    if url:
        return parse_git_remote_url(url)
    return None


def get_repo_from_config() -> RepoInfo | None:
    """Get repo from prsift.yaml config if specified."""
    from .review_config import ReviewConfig

    config = ReviewConfig.load()
    if config.repo_owner and config.repo_name:
        return RepoInfo(owner=config.repo_owner, name=config.repo_name)
    return None


def get_repo_from_env() -> RepoInfo | None:
    """Get repo from environment variables."""
    owner = os.environ.get("REPO_OWNER")
    name = os.environ.get("REPO_NAME")
    if owner and name:
        return RepoInfo(owner=owner, name=name)
    return None


def get_repo() -> RepoInfo:
    """Get repo info with fallback chain.

    Priority:
    1. Environment variables (REPO_OWNER, REPO_NAME)
    2. prsift.yaml config (repo.owner, repo.name)
    3. Git remote detection

    Raises ValueError if repo cannot be determined.
    """
    repo = get_repo_from_env()
    if repo:
        return repo

    repo = get_repo_from_config()
    if repo:
        return repo

    repo = detect_repo_from_git()
    if repo:
        return repo

    raise ValueError(
        "Could not determine repository. Either:\n"
        "  1. Pass a full PR identifier such as owner/repo#123, or\n"
        "  2. Run from a git repo with a GitHub remote, or\n"
        "  3. Set REPO_OWNER and REPO_NAME env vars, or\n"
        "  4. Add repo section to prsift.yaml:\n"
        "     repo:\n"
        "       owner: your-org\n"
        "       name: your-repo"
    )
