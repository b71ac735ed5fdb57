# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
Shared helper functions for the bulk pull request / issue commands
"""

import asyncio
from typing import Callable, Optional

import click
from rich.console import Console

from repofleet.config import Config, load_config
from repofleet.errors import ConfigError, FatalError
from repofleet.fleet import FilterSpec, FleetReport, IteratorOptions, ItemAction, iterate_fleet, make_reporter
from repofleet.utils.github_api_tools import GitHubClient
from repofleet.utils.logging import setup_logging

from .tables import build_items_table, build_repo_errors_table

console = Console()

# Exit codes
EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2

ActionFactory = Callable[[GitHubClient], ItemAction]


def print_success(message: str) -> None:
    """Print a standardized success message."""
    console.print(f'\n  [green]✓[/green] {message}\n')


def print_error(message: str) -> None:
    """Print a standardized error message."""
    console.print(f'\n  [red]✗[/red] {message}\n')


def make_client(config: Config) -> GitHubClient:
    """Build the GitHub client for a loaded configuration."""
    return GitHubClient(
        token=config.github_token,
        base_branch_override=config.base_branch,
        connection_limit=config.concurrency,
    )


def fleet_options(func):
    """Attach the filter and iteration flags shared by every bulk command."""
    options = [
        click.option('--title', '-t', default=None, help='Regex the item title must match'),
        click.option('--branch', '-b', default=None, help='Regex the PR source branch must match'),
        click.option('--body', default=None, help='Regex the item body must match'),
        click.option('--label', '-l', default=None, help='Regex at least one PR label must match'),
        click.option('--author', default=None, help='Exact login of the item author'),
        click.option('--concurrency', type=click.IntRange(min=1), default=None, help='Max concurrent requests (default 15)'),
        click.option('--retry', is_flag=True, help='Retry failed actions using the configured retryStrategy'),
        click.option('--nocache', is_flag=True, help='Ignore and do not refresh the local scan cache'),
        click.option('--delay', type=click.FloatRange(min=0), default=0.0, help='Seconds to wait before each request'),
        click.option('--config', 'config_path', default=None, help='Path to config.yaml (default $REPO_CONFIG_PATH or ./config.yaml)'),
        click.option('--verbose', '-v', is_flag=True, help='Show debug output'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


async def _run(
    config: Config,
    filter_spec: FilterSpec,
    action_factory: ActionFactory,
    options: IteratorOptions,
) -> FleetReport:
    async with make_client(config) as client:
        return await iterate_fleet(
            config,
            client,
            filter_spec,
            action_factory(client),
            options=options,
            reporter=make_reporter(console),
        )


def print_report(report: FleetReport) -> None:
    """Itemized end-of-run report: what worked, what failed, which repositories could not be scanned."""
    noun = f'{report.kind.noun}s'

    console.print(f'\nSuccessfully processed: {len(report.successful)} {noun}')
    if report.successful:
        console.print(build_items_table(report.successful))

    if report.failed:
        console.print(f'\n[red]Unable to process: {len(report.failed)} {noun}[/red]')
        console.print(build_items_table(report.failed, title=f'Failed {noun}'))

    if report.repo_errors:
        console.print(f'\n[red]Cannot list open {noun} in {len(report.repo_errors)} repositories[/red]')
        console.print(build_repo_errors_table(report.repo_errors))

    if report.ok:
        print_success(f'{len(report.successful)} {noun} {report.action.past_tense}')


def run_fleet_command(
    ctx: click.Context,
    command: str,
    action_factory: ActionFactory,
    requires_filter: bool,
    title: Optional[str],
    branch: Optional[str],
    body: Optional[str],
    label: Optional[str],
    author: Optional[str],
    concurrency: Optional[int],
    retry: bool,
    nocache: bool,
    delay: float,
    config_path: Optional[str],
    verbose: bool,
) -> None:
    """Load config, run the fleet iterator with the command's action, print the report and exit."""
    setup_logging(verbose=verbose)

    try:
        filter_spec = FilterSpec.from_options(title=title, branch=branch, label=label, body=body, author=author)
        if requires_filter:
            filter_spec.require_criteria(command)
        config = load_config(config_path)
        options = IteratorOptions(concurrency=concurrency, retry=retry, use_cache=not nocache, delay=delay)
        report = asyncio.run(_run(config, filter_spec, action_factory, options))
    except ConfigError as e:
        print_error(str(e))
        ctx.exit(EXIT_USAGE)
    except FatalError as e:
        print_error(str(e))
        ctx.exit(EXIT_FAILURES)

    print_report(report)
    ctx.exit(report.exit_code)

