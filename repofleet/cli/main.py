# The MIT License (MIT)
# Copyright © 2025 Entrius

"""
repo-fleet CLI - Main entry point

Usage:
    repo config                  - Show the loaded configuration
    repo list-prs ...            - List matching PRs (alias: list)
    repo list-issues ...         - List matching issues
    repo approve|merge|reject|rename|tag|untag|update ...
                                 - Bulk operations on matching PRs
"""

import click

from repofleet.cli.pr_commands import EXIT_USAGE, console, print_error, register_commands
from repofleet.cli.pr_commands.tables import build_table
from repofleet.config import load_config
from repofleet.errors import ConfigError

__version__ = '1.0.0'


class AliasGroup(click.Group):
    """Click Group that supports command aliases without duplicate help entries."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._aliases = {}  # alias -> canonical name

    def add_alias(self, name, alias):
        """Register an alias for an existing command."""
        self._aliases[alias] = name

    def get_command(self, ctx, cmd_name):
        canonical = self._aliases.get(cmd_name, cmd_name)
        return super().get_command(ctx, canonical)

    def format_commands(self, ctx, formatter):
        """Write the help text, appending aliases to command descriptions."""
        alias_map = {}
        for alias, canonical in self._aliases.items():
            alias_map.setdefault(canonical, []).append(alias)

        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.commands.get(subcommand)
            if cmd is None or cmd.hidden:
                continue
            help_text = cmd.get_short_help_str(limit=150)
            aliases = alias_map.get(subcommand)
            if aliases:
                subcommand = f'{subcommand}, {", ".join(sorted(aliases))}'
            commands.append((subcommand, help_text))

        if commands:
            with formatter.section('Commands'):
                formatter.write_dl(commands)


@click.group(cls=AliasGroup)
@click.version_option(version=__version__, prog_name='repo-fleet')
def cli():
    """repo-fleet - bulk operations on pull requests and issues across many GitHub repositories"""
    pass


@cli.command('config')
@click.option('--config', 'config_path', default=None, help='Path to config.yaml')
@click.pass_context
def show_config(ctx, config_path):
    """Show the configuration the bulk commands would use (token masked)."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        ctx.exit(EXIT_USAGE)

    console.print('\n[bold]repo-fleet Configuration[/bold]\n')
    table = build_table(show_header=True)
    table.add_column('Setting', style='cyan')
    table.add_column('Value', style='green')
    for key, value in config.to_display().items():
        table.add_row(key, value)

    console.print(table)
    console.print(f'\n[dim]Config file: {config.source}[/dim]\n')


register_commands(cli)


def main():
    """Main entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
