# Entrius 2025

"""
Configuration loading for repo-fleet.

Priority:
    1. CLI arguments (highest - handled by callers)
    2. Environment (GITHUB_TOKEN, REPO_CONFIG_PATH), including a local .env file
    3. The YAML config file
    4. Defaults

Config file format:
    githubToken: ghp_xxx
    repos:
      - org: googleapis
        regex: ^nodejs-
      - org: googleapis
        name: gaxios
    repoSearch: org:googleapis language:typescript is:public archived:false
    baseBranch: main            # optional override of every repository's base branch
    retryStrategy: [3, 6, 15]   # seconds between attempts
    cacheMaxAge: 3600           # seconds
    concurrency: 15
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from repofleet.constants import (
    CONFIG_PATH_ENV,
    DEFAULT_CACHE_MAX_AGE,
    DEFAULT_CONCURRENCY,
    DEFAULT_CONFIG_FILE,
    DEFAULT_RETRY_STRATEGY,
    GITHUB_TOKEN_ENV,
)
from repofleet.errors import ConfigError
from repofleet.utils.utils import mask_secret


@dataclass(frozen=True)
class RepoSelector:
    """One ``repos`` entry: an organization plus either a name regex or an exact name"""

    org: str
    regex: Optional[str] = None
    name: Optional[str] = None

    def describe(self) -> str:
        if self.name:
            return f'{self.org}/{self.name}'
        return f'{self.org} (regex {self.regex})'


@dataclass(frozen=True)
class Config:
    github_token: Optional[str] = None
    repos: Tuple[RepoSelector, ...] = ()
    repo_search: Optional[str] = None
    base_branch: Optional[str] = None
    retry_strategy: Tuple[float, ...] = DEFAULT_RETRY_STRATEGY
    cache_max_age: float = DEFAULT_CACHE_MAX_AGE
    concurrency: int = DEFAULT_CONCURRENCY
    source: Optional[Path] = field(default=None, compare=False)

    @property
    def has_repository_source(self) -> bool:
        return bool(self.repos) or bool(self.repo_search)

    def to_display(self) -> Dict[str, str]:
        """Flattened, token-masked view of the settings for the ``config`` command."""
        return {
            'githubToken': mask_secret(self.github_token) if self.github_token else '(not set)',
            'repos': ', '.join(selector.describe() for selector in self.repos) or '(none)',
            'repoSearch': self.repo_search or '(none)',
            'baseBranch': self.base_branch or '(repository default)',
            'retryStrategy': ', '.join(f'{delay:g}s' for delay in self.retry_strategy),
            'cacheMaxAge': f'{self.cache_max_age:g}s',
            'concurrency': str(self.concurrency),
        }


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Explicit path wins, then $REPO_CONFIG_PATH, then ./config.yaml."""
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path(DEFAULT_CONFIG_FILE)


def validate_retry_strategy(value: Any) -> Tuple[float, ...]:
    """Validate a backoff schedule: a non-empty list of positive numbers of seconds."""
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigError('retryStrategy must be a non-empty list of seconds, e.g. [3, 6, 15]')
    delays = []
    for delay in value:
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay <= 0:
            raise ConfigError(f'retryStrategy entries must be positive numbers of seconds (got {delay!r})')
        delays.append(float(delay))
    return tuple(delays)


def _positive_number(settings: Dict[str, Any], key: str, default: float, cast=float):
    value = settings.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f'{key} must be a positive number (got {value!r})')
    return cast(value)


def _parse_selectors(raw: Any) -> Tuple[RepoSelector, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError('repos must be a list of {org, regex} or {org, name} entries')

    selectors: List[RepoSelector] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get('org'):
            raise ConfigError(f'Each repos entry needs an org (got {entry!r})')
        if not entry.get('name') and not entry.get('regex'):
            raise ConfigError(
                f"Each organization in the config must provide either a name or a regex (org {entry['org']})"
            )
        selectors.append(RepoSelector(org=entry['org'], regex=entry.get('regex'), name=entry.get('name')))
    return tuple(selectors)


def parse_config(settings: Dict[str, Any], source: Optional[Path] = None) -> Config:
    """Build a validated Config from the parsed YAML mapping."""
    if not isinstance(settings, dict):
        raise ConfigError(f'Configuration file {source} must contain a mapping of settings')

    token = os.getenv(GITHUB_TOKEN_ENV) or settings.get('githubToken')
    return Config(
        github_token=token,
        repos=_parse_selectors(settings.get('repos')),
        repo_search=settings.get('repoSearch') or None,
        base_branch=settings.get('baseBranch') or None,
        retry_strategy=validate_retry_strategy(settings.get('retryStrategy', list(DEFAULT_RETRY_STRATEGY))),
        cache_max_age=_positive_number(settings, 'cacheMaxAge', DEFAULT_CACHE_MAX_AGE),
        concurrency=_positive_number(settings, 'concurrency', DEFAULT_CONCURRENCY, cast=int),
        source=source,
    )


def load_config(path: Optional[str] = None) -> Config:
    """
    Load and validate the YAML configuration.

    Args:
        path: Explicit config file path (``--config``), optional

    Returns:
        Validated Config

    Raises:
        ConfigError: when the file is missing, unreadable, or invalid
    """
    load_dotenv()
    config_path = resolve_config_path(path)

    try:
        with open(config_path, 'r') as f:
            settings = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(
            f'Cannot read configuration file {config_path}. Have you created it? '
            f'Use config.yaml.default as a sample, or point ${CONFIG_PATH_ENV} at your file.'
        )
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f'Cannot parse configuration file {config_path}: {e}')

    return parse_config(settings, config_path)
