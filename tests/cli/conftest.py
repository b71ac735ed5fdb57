# The MIT License (MIT)
# Copyright © 2025 Entrius

"""Shared fixtures for CLI tests."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from repofleet.fleet.cache import CacheStore

CONFIG_YAML = """\
githubToken: ghp_supersecret
repoSearch: org:googleapis language:typescript
retryStrategy: [0.01]
concurrency: 4
"""


@pytest.fixture
def cli_root():
    from repofleet.cli.main import cli

    return cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run inside a scratch directory holding a config.yaml, with no token in the environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)
    monkeypatch.delenv('REPO_CONFIG_PATH', raising=False)
    (tmp_path / 'config.yaml').write_text(CONFIG_YAML)
    return tmp_path


@pytest.fixture
def github(fake_github, workdir, repo_factory, pr_factory, issue_factory):
    """FakeGitHub with two repositories, wired in place of the real client and cache directory."""
    foo, bar = repo_factory('foo'), repo_factory('bar')
    fake_github.search_results = [foo, bar]
    fake_github.prs[foo.key] = [
        pr_factory(1, 'feat: add thing', repo=foo.key, branch='feat-1'),
        pr_factory(2, 'fix: bug', repo=foo.key, branch='fix-2'),
    ]
    fake_github.prs[bar.key] = [pr_factory(3, 'feat: other', repo=bar.key, branch='feat-3')]
    fake_github.issues[foo.key] = [issue_factory(4, 'flaky: test failed', repo=foo.key)]

    def cache_in_workdir(max_age):
        return CacheStore(directory=workdir / 'cache', max_age=max_age)

    with (
        patch('repofleet.cli.pr_commands.helpers.make_client', return_value=fake_github) as make_client,
        patch('repofleet.fleet.iterator.CacheStore', side_effect=cache_in_workdir),
    ):
        fake_github.make_client = make_client
        yield fake_github
