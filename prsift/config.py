"""Configuration for GitHub review comment aggregation."""

import os

from dotenv import load_dotenv

load_dotenv()

# Auth: PAT (simple) or GitHub App (higher rate limits)
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")

# GitHub App auth (optional, takes precedence over PAT if all are set)
GITHUB_APP_ID = os.environ.get("GITHUB_APP_ID")
GITHUB_APP_PRIVATE_KEY_PATH = os.environ.get("GITHUB_APP_PRIVATE_KEY_PATH")
GITHUB_APP_INSTALLATION_ID = os.environ.get("GITHUB_APP_INSTALLATION_ID")

LOG_LEVEL = os.environ.get("PRSIFT_LOG_LEVEL", "WARNING").upper()

# Pagination settings
DEFAULT_PAGE_SIZE = int(os.environ.get("PRSIFT_PAGE_SIZE", "20"))  # Items per source page
MAX_PAGE_SIZE = 100  # GitHub's per_page ceiling

# GraphQL windows for review thread resolution
THREAD_WINDOW = 100
COMMENT_WINDOW = 100

# Parser settings
DESCRIPTION_LOOKAHEAD = 20  # Lines scanned after an item header
