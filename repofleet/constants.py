# Entrius 2025
import tempfile
from pathlib import Path

# =============================================================================
# General
# =============================================================================
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

# =============================================================================
# GitHub API
# =============================================================================
BASE_GITHUB_API_URL = "https://api.github.com"
GITHUB_PER_PAGE = 100
GITHUB_REQUEST_TIMEOUT = 30  # seconds, per HTTP request
USER_AGENT = "repo-fleet"

# Statuses worth another attempt: secondary rate limits and GitHub-side hiccups
RETRYABLE_STATUSES = frozenset({403, 429, 500, 502, 503, 504})

# =============================================================================
# Fleet iteration
# =============================================================================
DEFAULT_CONCURRENCY = 15
FETCH_MAX_ATTEMPTS = 3
DEFAULT_RETRY_STRATEGY = (3.0, 6.0, 15.0, 30.0, 60.0)  # seconds between attempts

# =============================================================================
# Cache
# =============================================================================
CACHE_DIRECTORY = Path(tempfile.gettempdir()) / "repo-fleet-cache"
DEFAULT_CACHE_MAX_AGE = SECONDS_PER_HOUR

# =============================================================================
# Configuration
# =============================================================================
DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_PATH_ENV = "REPO_CONFIG_PATH"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"

# =============================================================================
# Logging
# =============================================================================
DEBUG_LOG_FILE = "repo-debug.log"
DEBUG_LOG_MAX_BYTES = 5 * 1024 * 1024
