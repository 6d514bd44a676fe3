"""CLI tool to generate a starter prsift.yaml.

Detects the repository from the git remote of the target directory and
writes the default query options so they can be edited in place.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from ..repo import RepoInfo, parse_git_remote_url
from ..review_config import ReviewConfig

HEADER = """# prsift.yaml - defaults for unresolved review feedback queries
# Generated by: prsift init
#
# bots.patterns are glob patterns matched against comment author logins.
# defaults.* apply to `prsift unresolved` and the MCP tool unless overridden.

"""


def detect_repo(root: Path) -> RepoInfo | None:
    """Detect owner/name from the origin remote of a checkout."""
    try:
        result = subprocess.run(
            ["git", "-C", str(root), "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return parse_git_remote_url(result.stdout.strip())


def generate_config(root: Path) -> ReviewConfig:
    config = ReviewConfig.default()
    repo = detect_repo(root)
    if repo:
        config.repo_owner = repo.owner
        config.repo_name = repo.name
    return config


def init_config(root: Path | None = None, output: Path | None = None) -> str:
    """Write prsift.yaml for a repository.

    Args:
        root: Repository root (defaults to cwd)
        output: Output file path (defaults to prsift.yaml in root)

    Returns:
        YAML config string
    """
    if root is None:
        root = Path.cwd()
    if output is None:
        output = root / "prsift.yaml"

    print(f"Detecting repository in {root}...")
    config = generate_config(root)

    if config.repo_owner:
        print(f"  Found {config.repo_owner}/{config.repo_name}")
    else:
        print("  No GitHub remote found; set repo.owner and repo.name by hand or use full PR identifiers.")

    full_content = HEADER + config.to_yaml()

    print(f"\nWriting config to {output}")
    with open(output, "w") as f:
        f.write(full_content)

    return full_content
